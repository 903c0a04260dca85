"""Self-registering backend registry.

Each backend module calls :func:`submit` once at import time with its
:class:`BackendDescriptor`. :func:`discover` imports the modules listed in
``BACKEND_MODULES``; adding a backend means adding its module and one entry
there. :func:`initialize` builds the read-only :class:`BackendRegistry` and
fails fatally if two modules claimed the same name.
"""

from __future__ import annotations

import importlib
import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from windsurf_forecast.domain.errors import DuplicateBackendError, UnknownBackendError
from windsurf_forecast.providers.weather.base import ForecastBackend

logger = logging.getLogger(__name__)

BACKENDS_PACKAGE = "windsurf_forecast.providers.weather"

BACKEND_MODULES = (
    f"{BACKENDS_PACKAGE}.openweathermap",
    f"{BACKENDS_PACKAGE}.stormglass",
    f"{BACKENDS_PACKAGE}.windy",
)

_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9_-]*$")

_COLLECTED: List["BackendDescriptor"] = []


@dataclass(frozen=True)
class BackendDescriptor:
    name: str
    description: str
    credential_var: str
    factory: Callable[[], ForecastBackend] = field(repr=False)
    module: str = ""

    def __post_init__(self):
        if not _NAME_RE.match(self.name):
            raise ValueError(
                f"Backend name {self.name!r} must be lowercase alphanumeric with optional hyphens/underscores"
            )


def submit(descriptor: BackendDescriptor) -> BackendDescriptor:
    _COLLECTED.append(descriptor)
    logger.debug("Collected backend %r from %s", descriptor.name, descriptor.module or "<unknown>")
    return descriptor


def collected() -> Tuple[BackendDescriptor, ...]:
    return tuple(_COLLECTED)


def discover(modules: Iterable[str] = BACKEND_MODULES) -> List[str]:
    """Import each backend module so its descriptor gets submitted; returns the module names."""
    imported: List[str] = []
    for module_name in modules:
        importlib.import_module(module_name)
        imported.append(module_name)
    return imported


class BackendRegistry:
    """Read-only name -> descriptor view. Duplicate names are rejected on construction."""

    def __init__(self, descriptors: Iterable[BackendDescriptor]) -> None:
        self._descriptors: Dict[str, BackendDescriptor] = {}
        for descriptor in descriptors:
            existing = self._descriptors.get(descriptor.name)
            if existing is not None:
                raise DuplicateBackendError(descriptor.name, existing, descriptor)
            self._descriptors[descriptor.name] = descriptor

    def lookup(self, name: str) -> Optional[BackendDescriptor]:
        return self._descriptors.get(name)

    def names(self) -> List[str]:
        return sorted(self._descriptors)

    def descriptions(self) -> List[Tuple[str, str]]:
        return [(name, self._descriptors[name].description) for name in self.names()]

    def validate(self, name: str) -> None:
        if name not in self._descriptors:
            raise UnknownBackendError(name, self.names())

    def instantiate(self, name: str) -> ForecastBackend:
        self.validate(name)
        descriptor = self._descriptors[name]
        # Factory errors (missing credentials) surface unchanged.
        backend = descriptor.factory()
        logger.info("Instantiated backend %r", name)
        return backend

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)


@lru_cache(maxsize=1)
def initialize() -> BackendRegistry:
    """Discover backend modules and build the registry once per process."""
    discover()
    registry = BackendRegistry(collected())
    logger.debug("Backend registry initialized with %s", ", ".join(registry.names()))
    return registry
