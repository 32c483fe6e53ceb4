"""Errors raised at the engine boundary.

Invalid program structure is never raised; it is reported by the issue
detector. These exceptions cover calls that cannot be expressed at all.
"""

from __future__ import annotations


class UnknownSettingError(ValueError):
    """A routine/field pair outside the known settings vocabulary."""


class InvalidOverrideTargetError(ValueError):
    """An override target that does not exist in the current partition."""


class PendingChangeError(ValueError):
    """A confirmation token that is unknown or already resolved."""
