"""Configuration package exports."""

from .models import DEFAULT_ALGORITHM, DEFAULT_FETCH_TIMEOUT, DEFAULT_PARALLEL, HasherSettings

__all__ = [
    "DEFAULT_ALGORITHM",
    "DEFAULT_FETCH_TIMEOUT",
    "DEFAULT_PARALLEL",
    "HasherSettings",
]
