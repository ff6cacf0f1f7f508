"""Exceptions raised for caller input errors."""


class ValidationError(ValueError):
    """Request rejected before any side effect took place."""
