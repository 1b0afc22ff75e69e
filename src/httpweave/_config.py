"""
Client configuration

Defaults for every Client can come from code or from HTTPWEAVE_* environment
variables.
"""

import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


@dataclass
class ClientConfig:
    """Default settings applied to a Client before its explicit options."""

    handler: str = "curl"
    user_agent: Optional[str] = None
    verify_peer: bool = True
    allow_self_signed: bool = False
    timeout: Optional[float] = None
    select_timeout: float = 1.0
    follow_location: bool = True
    max_redirects: int = 20

    def __post_init__(self):
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.select_timeout <= 0:
            raise ValueError("select_timeout must be positive")
        if self.max_redirects < 0:
            raise ValueError("max_redirects cannot be negative")

    @classmethod
    def from_env(cls, prefix: str = "HTTPWEAVE_", environ=None) -> "ClientConfig":
        """Build a config from environment variables.

        Each field maps to ``<prefix><FIELD>``, e.g. ``HTTPWEAVE_VERIFY_PEER=0``.
        Unset variables keep the field default.
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        for field in fields(cls):
            key = prefix + field.name.upper()
            raw = environ.get(key)
            if raw is None or raw == "":
                continue
            if field.name in ("verify_peer", "allow_self_signed", "follow_location"):
                values[field.name] = _parse_bool(key, raw)
            elif field.name in ("timeout", "select_timeout"):
                values[field.name] = float(raw)
            elif field.name == "max_redirects":
                values[field.name] = int(raw)
            else:
                values[field.name] = raw

        return cls(**values)

    def to_options(self) -> Dict[str, Any]:
        """Return the Client options this config stands for"""
        options: Dict[str, Any] = {
            "verify_peer": self.verify_peer,
            "allow_self_signed": self.allow_self_signed,
            "follow_location": self.follow_location,
            "max_redirects": self.max_redirects,
        }
        if self.user_agent is not None:
            options["user_agent"] = self.user_agent
        if self.timeout is not None:
            options["timeout"] = self.timeout
        return options
