"""Exceptions raised at the edges of vie-gamifiee (import and configuration)."""

from __future__ import annotations


class MalformedInputError(ValueError):
    """An import payload is not valid JSON or does not have the expected shape."""


class InvalidConfigError(ValueError):
    """A configuration change (action, badge, settings, entry) was rejected."""
