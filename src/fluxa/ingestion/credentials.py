"""Read-only API credential set captured from the environment at startup."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


def override_name(source_key: str) -> str:
    """Name of the per-source credential override, e.g. ``NEWSX_API_KEY``."""
    return source_key.upper().replace("-", "_") + "_API_KEY"


@dataclass(frozen=True)
class Credentials:
    """Credential values keyed by their environment variable name."""

    keys: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "keys", MappingProxyType(dict(self.keys)))

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> Credentials:
        """Capture every non-empty ``*_KEY`` variable."""
        environ = os.environ if environ is None else environ
        return cls({name: value for name, value in environ.items() if name.endswith("_KEY") and value})

    def lookup(self, source_key: str, shared_names: tuple[str, ...]) -> str | None:
        """Resolve the per-source override first, then the shared names in order."""
        for name in (override_name(source_key), *shared_names):
            value = self.keys.get(name)
            if value:
                return value
        return None
