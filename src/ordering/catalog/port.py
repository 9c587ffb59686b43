"""Product catalog port.

The ordering context never owns products, prices or stores. It reads them
through this interface at the moments a price must be locked (adding to the
cart) or re-checked (checkout validation).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ProductInfo:
    product_id: str
    store_id: str
    name: str
    base_price: float
    is_available: bool = True
    category_id: str | None = None


@dataclass(frozen=True)
class AddOnInfo:
    add_on_id: str
    name: str
    price: float
    is_available: bool = True


@dataclass(frozen=True)
class StoreInfo:
    store_id: str
    name: str
    is_active: bool = True


class ProductCatalog(ABC):
    """Read-only view of the product catalog."""

    @abstractmethod
    def get_product(self, product_id: str) -> ProductInfo | None:
        """Return the product, or None when it does not exist."""
        ...

    @abstractmethod
    def get_add_ons(self, add_on_ids: list[str]) -> list[AddOnInfo]:
        """Return the add-ons that exist among ``add_on_ids``."""
        ...

    @abstractmethod
    def get_store(self, store_id: str) -> StoreInfo | None:
        ...
