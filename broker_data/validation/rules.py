"""
Broker record rule catalog

Required rules decide validity; format and business rules only raise warnings.
Checks run against the transformed (canonical) value and must not raise.
"""

import math
import re
from typing import Any, List, Optional

from broker_data.config import Settings, settings as default_settings
from .types import FieldRule, RuleKind

_NAME_CHARS = re.compile(r"[a-zA-Z0-9\s&\-.']+")
_DIGITS = re.compile(r"[0-9]+")
_LEVERAGE = re.compile(r"[0-9:]+")


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (isinstance(value, float) and math.isnan(value))


def _non_empty_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0


def build_rules(config: Optional[Settings] = None) -> List[FieldRule]:
    """Build the ordered rule table: required, then format, then business."""
    config = config or default_settings
    low, high = config.rating_bounds()
    min_desc, max_desc = config.description_min_length, config.description_max_length

    return [
        # Required fields
        FieldRule(
            field='name',
            kind=RuleKind.REQUIRED,
            check=lambda v: isinstance(v, str) and len(v.strip()) >= config.name_min_length,
            message=f"Broker name must be at least {config.name_min_length} characters long",
        ),
        FieldRule(
            field='rating',
            kind=RuleKind.REQUIRED,
            check=lambda v: _is_number(v) and low <= v <= high,
            message=f"Rating must be a number between {low:g} and {high:g}",
        ),

        # Format validation
        FieldRule(
            field='name',
            kind=RuleKind.FORMAT,
            check=lambda v: isinstance(v, str) and _NAME_CHARS.fullmatch(v.strip()) is not None,
            message="Broker name contains invalid characters",
        ),
        FieldRule(
            field='description',
            kind=RuleKind.FORMAT,
            check=lambda v: not v or (isinstance(v, str) and min_desc <= len(v) <= max_desc),
            message=f"Description should be between {min_desc} and {max_desc} characters",
        ),
        FieldRule(
            field='minDeposit',
            kind=RuleKind.FORMAT,
            check=lambda v: not v or _DIGITS.fullmatch(str(v)) is not None,
            message="Minimum deposit should be a positive number",
        ),
        FieldRule(
            field='spread',
            kind=RuleKind.FORMAT,
            check=lambda v: not v or (_is_number(v) and v >= 0),
            message="Spread should be a positive number",
        ),
        FieldRule(
            field='leverage',
            kind=RuleKind.FORMAT,
            check=lambda v: not v or _LEVERAGE.fullmatch(str(v)) is not None,
            message='Leverage should be in format like "1:100", "1:500", etc.',
        ),

        # Business logic validation
        FieldRule(
            field='regulations',
            kind=RuleKind.BUSINESS,
            check=_non_empty_list,
            message="Broker should have at least one regulatory body",
        ),
        FieldRule(
            field='platforms',
            kind=RuleKind.BUSINESS,
            check=_non_empty_list,
            message="Broker should have at least one trading platform",
        ),
    ]
