"""
Field transformers (internal).

Every transformer maps one raw scraped value to its canonical form. They are
pure, idempotent and never raise: a value of an unexpected shape degrades to
a safe default (None, 0 or an empty list) instead.

Raw values are one of str, int, float, list of str or None (see
``types.RawValue``); each transformer dispatches on those shapes explicitly.
"""

import math
import re
from functools import partial
from typing import Any, Dict, Iterable, List, Optional, Tuple

from broker_data.config import Settings, settings as default_settings
from .types import Transformer


# ============================================================================
# Patterns
# ============================================================================

_CSS_URL = re.compile(r"url\([^)]*\)")
_LEADING_NON_LETTERS = re.compile(r"^[^a-zA-Z]+")
# Whitespace is included so a trailing "™ " run goes in one pass
_TRAILING_DISALLOWED = re.compile(r"[^a-zA-Z0-9&\-.']+$")
_WHITESPACE = re.compile(r"\s+")
_NON_DIGITS = re.compile(r"[^0-9]")
_NON_LEVERAGE = re.compile(r"[^0-9:]")

BOILERPLATE_PATTERNS = (
    re.compile(r"The\s+DFX\s+Team\s+at\s+DailyForex[^.]*(\.|\s*For\s+more\s+information)", re.IGNORECASE),
)

# Scraper artifacts that end up in regulator lists
REGULATION_NOISE_PATTERNS = (
    re.compile(r"^[^a-zA-Z]*$"),  # no letters
    re.compile(r"^(the|and|or|of|in|by|to|for|with)$", re.IGNORECASE),  # stop words
    re.compile(r"^\d+px$"),  # CSS pixel values
    re.compile(r"https?://"),  # URLs
    re.compile(r"\.(png|jpg|jpeg|gif|svg)$", re.IGNORECASE),  # image files
    re.compile(r"^[{}'\";]*$"),  # CSS/JS fragments
    re.compile(r"^img-responsive", re.IGNORECASE),  # CSS classes
    re.compile(r"^lazy\s*=\s*loading$", re.IGNORECASE),  # loading attributes
)

ACCOUNT_TYPE_SYNONYMS = {
    'islamic account': 'Islamic Account',
    'islamic': 'Islamic Account',
    'standard account': 'Standard Account',
    'standard': 'Standard Account',
    'mini account': 'Mini Account',
    'mini': 'Mini Account',
    'micro account': 'Micro Account',
    'micro': 'Micro Account',
    'vip account': 'VIP Account',
    'vip': 'VIP Account',
    'ecn account': 'ECN Account',
    'ecn': 'ECN Account',
    'stp account': 'STP Account',
    'stp': 'STP Account',
}

PLATFORM_SYNONYMS = {
    'mt4': 'MetaTrader 4',
    'metatrader 4': 'MetaTrader 4',
    'mt5': 'MetaTrader 5',
    'metatrader 5': 'MetaTrader 5',
    'ctrader': 'cTrader',
    'web trader': 'Web Trader',
    'mobile trader': 'Mobile Trader',
}


# ============================================================================
# Shape helpers
# ============================================================================

def _to_float(value: Any) -> Optional[float]:
    """Parse a number or numeric string; anything else (and NaN) is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        try:
            number = float(value)
        except OverflowError:
            number = math.inf if value > 0 else -math.inf
    elif isinstance(value, float):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


def _coerce_list(value: Any) -> List[str]:
    """Coerce a raw list-ish value to a list of strings.

    A bare string counts as a one-item list; numbers, dicts and None give an
    empty list. None entries and nested containers inside a list are skipped.
    """
    if isinstance(value, str):
        items: Iterable[Any] = [value]
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        return []

    return [
        str(item)
        for item in items
        if item is not None and not isinstance(item, (list, tuple, dict, set))
    ]


def _dedupe(values: Iterable[str]) -> List[str]:
    """Drop repeats, keeping the first occurrence order."""
    return list(dict.fromkeys(values))


def _normalize_labels(value: Any, synonyms: Dict[str, str]) -> List[str]:
    labels = []
    for item in _coerce_list(value):
        label = item.lower().strip()
        if len(label) <= 2:
            continue
        labels.append(synonyms.get(label) or label[:1].upper() + label[1:])
    return _dedupe(labels)


# ============================================================================
# Transformers
# ============================================================================

def normalize_name(value: Any) -> Optional[str]:
    """
    Clean a scraped broker name.

    Removes CSS ``url(...)`` leftovers, leading non-letters and a trailing run
    of disallowed characters, then collapses whitespace.

    Example:
        >>> normalize_name("  Admirals™ ")
        'Admirals'
    """
    if not isinstance(value, str):
        return None
    name = _CSS_URL.sub("", value)
    name = _LEADING_NON_LETTERS.sub("", name)
    name = _TRAILING_DISALLOWED.sub("", name)
    name = _WHITESPACE.sub(" ", name).strip()
    return name or None


def normalize_description(value: Any) -> Optional[str]:
    """Strip publisher boilerplate and collapse whitespace."""
    if not isinstance(value, str):
        return None
    description = value
    for pattern in BOILERPLATE_PATTERNS:
        # Removing one match can join the halves of another
        removed = 1
        while removed:
            description, removed = pattern.subn("", description)
    description = _WHITESPACE.sub(" ", description).strip()
    return description or None


def normalize_regulations(value: Any) -> List[str]:
    """
    Clean a list of regulator names.

    Entries are trimmed, scraper noise (URLs, image names, CSS values, stop
    words, ...) is dropped and duplicates are removed in first-seen order.

    Example:
        >>> normalize_regulations(["FCA", "https://x.com/img.png", "the", "FCA"])
        ['FCA']
    """
    regulations = [item.strip() for item in _coerce_list(value)]
    kept = [
        reg for reg in regulations
        if not any(pattern.search(reg) for pattern in REGULATION_NOISE_PATTERNS)
    ]
    return _dedupe(kept)


def normalize_account_types(value: Any) -> List[str]:
    """Map account type labels onto their canonical names."""
    return _normalize_labels(value, ACCOUNT_TYPE_SYNONYMS)


def normalize_platforms(value: Any) -> List[str]:
    """
    Map trading platform labels onto their canonical names.

    Example:
        >>> normalize_platforms(["mt4", "MT4", "ctrader"])
        ['MetaTrader 4', 'cTrader']
    """
    return _normalize_labels(value, PLATFORM_SYNONYMS)


def normalize_rating(value: Any, bounds: Tuple[float, float] = (0.0, 5.0)) -> float:
    """Parse a rating and clamp it into ``bounds``; non-numeric input rates 0."""
    low, high = bounds
    rating = _to_float(value)
    if rating is None:
        rating = 0.0
    return max(low, min(high, rating))


def normalize_min_deposit(value: Any) -> Optional[int]:
    """
    Reduce a deposit amount to a whole number.

    Strings keep their digits only ("$1,000" -> 1000); numbers are truncated.
    Nothing usable gives None rather than 0.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        if not math.isfinite(value) or value < 0:
            return None
        return int(value)
    if isinstance(value, str):
        digits = _NON_DIGITS.sub("", value)
        return int(digits) if digits else None
    return None


def normalize_spread(value: Any) -> Optional[float]:
    """Parse a spread in pips; negatives clamp to 0, garbage gives None."""
    spread = _to_float(value)
    if spread is None or math.isinf(spread):
        return None
    return max(0.0, spread)


def normalize_leverage(value: Any) -> Optional[str]:
    """Keep only digits and ':' ("1:500x" -> "1:500")."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        text = str(int(value))
    elif isinstance(value, (str, int, float)):
        text = str(value)
    else:
        return None
    leverage = _NON_LEVERAGE.sub("", text)
    return leverage or None


def generate_slug(name: Any) -> Optional[str]:
    """
    Derive a URL slug from a canonical name.

    Example:
        >>> generate_slug("IG Markets & Co.")
        'ig-markets-co'
    """
    if not isinstance(name, str) or not name:
        return None
    slug = name.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    slug = slug.strip("-")
    return slug or None


def build_transformers(config: Optional[Settings] = None) -> Dict[str, Transformer]:
    """Return the field -> transformer table for the given settings."""
    config = config or default_settings
    return {
        'name': normalize_name,
        'description': normalize_description,
        'regulations': normalize_regulations,
        'accountTypes': normalize_account_types,
        'platforms': normalize_platforms,
        'rating': partial(normalize_rating, bounds=config.rating_bounds()),
        'minDeposit': normalize_min_deposit,
        'spread': normalize_spread,
        'leverage': normalize_leverage,
    }
