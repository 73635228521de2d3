"""Typed access to the positional fields carried by activity events."""

from typing import Sequence

from ..errors import FieldError
from .types import Field


def get_string(fields: Sequence[Field], n: int) -> str:
    """Return field ``n`` as a string.

    Raises:
        FieldError: If the field is missing or is not a string
    """
    if n >= len(fields):
        raise FieldError(f"Expected a string field at index {n}, got {len(fields)} field(s)")
    value = fields[n]
    if not isinstance(value, str):
        raise FieldError(f"Field {n} must be a string, got {type(value).__name__}")
    return value


def get_int(fields: Sequence[Field], n: int) -> int:
    """Return field ``n`` as an integer.

    Raises:
        FieldError: If the field is missing or is not an integer
    """
    if n >= len(fields):
        raise FieldError(f"Expected an integer field at index {n}, got {len(fields)} field(s)")
    value = fields[n]
    if isinstance(value, bool) or not isinstance(value, int):
        raise FieldError(f"Field {n} must be an integer, got {type(value).__name__}")
    return value
