"""Core database package: declarative base and mixins.

Base Classes and Mixins:
    - Base: Declarative base with constraint naming convention
    - IntegerPKMixin: Auto-increment integer primary key
    - TimestampMixin: created_at, updated_at tracking
    - UTCDateTime: timestamp column type normalized to UTC
"""

from .base import (
    NAMING_CONVENTION,
    Base,
    IntegerPKMixin,
    TimestampMixin,
    UTCDateTime,
    ensure_utc,
)

__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "IntegerPKMixin",
    "TimestampMixin",
    "UTCDateTime",
    "ensure_utc",
]
