"""Catalog adapter factory.

``get_catalog()`` returns the adapter named by ``CATALOG_ADAPTER``
(``fake`` by default); ``set_catalog()`` overrides it, mainly for tests.
"""

import os

from allocation.catalog.port import CatalogPort

_current_catalog: CatalogPort | None = None


def get_catalog() -> CatalogPort:
    global _current_catalog
    if _current_catalog is None:
        adapter = os.environ.get("CATALOG_ADAPTER", "fake")
        if adapter == "fake":
            from allocation.catalog.fake_adapter import FakeCatalog

            _current_catalog = FakeCatalog()
        else:
            raise ValueError(f"Unknown catalog adapter: {adapter}")
    return _current_catalog


def set_catalog(catalog: CatalogPort) -> None:
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    global _current_catalog
    _current_catalog = None
