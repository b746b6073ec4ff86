"""Exceptions raised by c45py."""
from sklearn.exceptions import NotFittedError


class InvalidInputError(ValueError):
    """Training data, metadata or a query vector is malformed."""


__all__ = ["InvalidInputError", "NotFittedError"]
