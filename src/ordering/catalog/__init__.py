"""Product catalog factory.

Provides get_catalog() / set_catalog() so deployments can plug in the real
catalog service while development and tests use InMemoryCatalog.
"""

from ordering.catalog.in_memory import InMemoryCatalog
from ordering.catalog.port import ProductCatalog

_current_catalog: ProductCatalog | None = None


def get_catalog() -> ProductCatalog:
    """Return the active catalog. Defaults to an empty InMemoryCatalog."""
    global _current_catalog
    if _current_catalog is None:
        _current_catalog = InMemoryCatalog()
    return _current_catalog


def set_catalog(catalog: ProductCatalog) -> None:
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    global _current_catalog
    _current_catalog = None
