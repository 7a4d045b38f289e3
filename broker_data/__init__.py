"""Validation and normalization of scraped forex broker records"""

__version__ = "0.1.0"
