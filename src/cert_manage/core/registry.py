"""Store registry — auto-discovers every platform trust store implementation."""

from __future__ import annotations

import importlib
import platform
import pkgutil
from inspect import isabstract
from typing import TYPE_CHECKING

from cert_manage import stores as stores_pkg
from cert_manage.core.errors import UnknownStoreError

if TYPE_CHECKING:
    from cert_manage.core.base import TrustStore
    from cert_manage.core.config import Settings


PLATFORM_DEFAULTS = {
    "Linux": "linux",
    "Darwin": "darwin",
    "Windows": "windows",
}

_registry: dict[str, type[TrustStore]] = {}
_discovered = False


def _discover_stores() -> None:
    """Walk cert_manage.stores.* and register every concrete TrustStore subclass."""
    global _discovered
    if _discovered:
        return

    from cert_manage.core.base import TrustStore

    for _importer, modname, ispkg in pkgutil.iter_modules(
        stores_pkg.__path__, stores_pkg.__name__ + "."
    ):
        if not ispkg:
            continue
        # Import the store.py inside each sub-package
        mod = importlib.import_module(f"{modname}.store")

        for attr_name in dir(mod):
            attr = getattr(mod, attr_name)
            if (
                isinstance(attr, type)
                and issubclass(attr, TrustStore)
                and not isabstract(attr)
                and attr.__module__ == mod.__name__
            ):
                _registry[attr.name] = attr

    _discovered = True


def get_store_class(name: str) -> type[TrustStore] | None:
    """Get a store implementation by name."""
    _discover_stores()
    return _registry.get(name)


def get_all_store_classes() -> dict[str, type[TrustStore]]:
    """Return all discovered store implementations."""
    _discover_stores()
    return dict(_registry)


def default_store_name() -> str:
    """The system trust store for the running platform."""
    return PLATFORM_DEFAULTS.get(platform.system(), "linux")


def create_store(name: str | None, settings: Settings | None = None) -> TrustStore:
    """Instantiate a store by name (the platform default when ``name`` is None).

    Raises UnknownStoreError for unknown names.
    """
    store_name = name or default_store_name()
    cls = get_store_class(store_name)
    if cls is None:
        raise UnknownStoreError(store_name, sorted(get_all_store_classes()))
    return cls(settings)
