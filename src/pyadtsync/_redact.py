"""Masking of portal credentials in debug output.

Login payloads, session cookies and :class:`~pyadtsync.config.AdtConfig`
all end up in DEBUG logs.  Passwords, cookies and tokens are replaced
outright; account names keep their first character so log lines from
different accounts can still be told apart.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

MASK = "***"

_SECRET_MARKERS: tuple[str, ...] = ("password", "cookie", "token", "sessionid", "authorization")
_ACCOUNT_KEYS: frozenset[str] = frozenset({"username", "user", "email"})


def _mask_account(value: Any) -> str:
    text = str(value)
    return f"{text[:1]}{MASK}" if text else MASK


def _mask_field(key: str, value: Any, max_string: int) -> Any:
    lowered = key.lower()
    if any(marker in lowered for marker in _SECRET_MARKERS):
        return MASK
    if lowered in _ACCOUNT_KEYS:
        return _mask_account(value)
    return redact_for_log(value, max_string=max_string)


def redact_for_log(value: Any, *, max_string: int = 512) -> Any:
    """Return a log-safe copy of *value*.

    Pydantic models and dataclasses are dumped to dicts first.  Strings
    longer than *max_string* are cut short.
    """
    if isinstance(value, BaseModel):
        value = value.model_dump()
    elif dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)

    if isinstance(value, Mapping):
        return {str(key): _mask_field(str(key), item, max_string) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [redact_for_log(item, max_string=max_string) for item in value]
    if isinstance(value, str) and len(value) > max_string:
        return f"{value[:max_string]}... ({len(value)} chars)"
    return value
