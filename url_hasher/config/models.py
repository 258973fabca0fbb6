"""Pydantic models describing one hashing run."""

from __future__ import annotations

import hashlib

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_FETCH_TIMEOUT = 60.0
DEFAULT_PARALLEL = 10
DEFAULT_ALGORITHM = "md5"


class HasherSettings(BaseModel):
    """Effective, frozen settings for a single ``Hasher.run`` call."""

    model_config = ConfigDict(frozen=True)

    parallel: int = Field(default=DEFAULT_PARALLEL, ge=1)
    fetch_timeout: float = Field(
        default=DEFAULT_FETCH_TIMEOUT,
        ge=0,
        description="Per-URL timeout in seconds; 0 selects the default.",
    )
    algorithm: str = DEFAULT_ALGORITHM

    @field_validator("fetch_timeout", mode="after")
    @classmethod
    def _default_timeout(cls, value: float) -> float:
        return value or DEFAULT_FETCH_TIMEOUT

    @field_validator("algorithm", mode="after")
    @classmethod
    def _validate_algorithm(cls, value: str) -> str:
        name = value.strip().lower()
        if name not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported digest algorithm: {value}")
        # shake_* digests have no fixed length
        if name.startswith("shake_"):
            raise ValueError(f"Digest algorithm must have a fixed size: {value}")
        return name

    @property
    def digest_size(self) -> int:
        return hashlib.new(self.algorithm, usedforsecurity=False).digest_size

    def new_digest(self) -> "hashlib._Hash":
        return hashlib.new(self.algorithm, usedforsecurity=False)


__all__ = ["DEFAULT_ALGORITHM", "DEFAULT_FETCH_TIMEOUT", "DEFAULT_PARALLEL", "HasherSettings"]
