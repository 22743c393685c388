"""Base model and enum for security portal payloads.

Every payload model inherits from :class:`AdtBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase portal keys map
  automatically to snake_case fields.
* A ``model_validator(mode="before")`` that strips placeholder values
  (``""``, ``"--"``, NaN) so the field default is used, and applies
  per-model key aliases.
* A ``raw`` dict that captures the original payload.

State enums inherit from :class:`AdtEnum` which adds an ``UNKNOWN``
member at ``-1`` and a ``_missing_`` hook that returns ``UNKNOWN``
for any value without a mapped member.
"""

from __future__ import annotations

import enum
import math
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Placeholder strings the portal uses for "not available".
_SENTINELS = frozenset({"", "--", "NaN", "nan"})


class AdtEnum(enum.IntEnum):
    """Base for portal state enums.

    Every subclass **must** define ``UNKNOWN = -1``.
    """

    @classmethod
    def _missing_(cls, value: object) -> AdtEnum:
        if hasattr(cls, "UNKNOWN"):
            unknown: AdtEnum = cls.UNKNOWN  # type: ignore[attr-defined]
            return unknown
        return next(iter(cls))


class AdtBaseModel(BaseModel):
    """Base for portal payload models."""

    _KEY_ALIASES: ClassVar[dict[str, str]] = {}
    """Legacy or misspelled portal keys mapped to their canonical camelCase name."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original payload dict."""

    @staticmethod
    def _clean_dict(values: dict[str, Any], aliases: dict[str, str] | None = None) -> dict[str, Any]:
        working = dict(values)
        if aliases:
            for old_key, new_key in aliases.items():
                if old_key in working and new_key not in working:
                    working[new_key] = working.pop(old_key)

        cleaned: dict[str, Any] = {}
        for key, value in working.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() in _SENTINELS:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_values(cls, values: Any) -> Any:
        """Strip placeholders, apply key aliases, and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        original = dict(values)
        cleaned = AdtBaseModel._clean_dict(original, cls._KEY_ALIASES)
        if "raw" not in values:
            cleaned["raw"] = original
        return cleaned
