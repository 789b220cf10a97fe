"""Data models for objtools."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .exceptions import MaskParseError


# Reserved mask key matching any field not listed explicitly.
WILDCARD = "_"


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class MaskKind(Enum):
    ALLOW = "allow"
    DENY = "deny"
    NODE = "node"


class ArrayWildcardPolicy(Enum):
    """How to treat a list with more than one element inside a mask tree."""
    REJECT = "reject"
    FIRST = "first"


def mask_kind(value: Any) -> MaskKind:
    """
    Classify a mask tree position.

    Anything that is not exactly ``True`` or a dict (``False``, ``None``,
    numbers, dates) denies.
    """
    if value is True:
        return MaskKind.ALLOW
    if isinstance(value, dict):
        return MaskKind.NODE
    return MaskKind.DENY


@dataclass
class MaskConfig:
    """Configuration for mask construction."""
    array_policy: ArrayWildcardPolicy = ArrayWildcardPolicy.REJECT
    strict: bool = False
    log_level: LogLevel = LogLevel.INFO

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "MaskConfig":
        """
        Build a config from a plain mapping, e.g. the ``config`` section of a
        mask definition file.

        Args:
            data: Mapping of field names to values (enum fields by value)

        Returns:
            MaskConfig instance
        """
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise MaskParseError(
                "config must be a mapping",
                reason=type(data).__name__
            )

        kwargs = {}
        for key, value in data.items():
            if key == "array_policy":
                kwargs[key] = _parse_enum(ArrayWildcardPolicy, value, key)
            elif key == "log_level":
                kwargs[key] = _parse_enum(LogLevel, str(value).upper(), key)
            elif key == "strict":
                if not isinstance(value, bool):
                    raise MaskParseError(
                        "config.strict must be a boolean",
                        path="config.strict",
                        reason=repr(value)
                    )
                kwargs[key] = value
            else:
                raise MaskParseError(
                    f"Unknown config option: {key}",
                    path=f"config.{key}"
                )
        return cls(**kwargs)

    def to_dict(self) -> dict:
        return {
            "array_policy": self.array_policy.value,
            "strict": self.strict,
            "log_level": self.log_level.value,
        }


def _parse_enum(enum_cls, value: Any, key: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise MaskParseError(
            f"Invalid value for config.{key}: {value!r} (expected one of {allowed})",
            path=f"config.{key}",
            reason=repr(value)
        )
