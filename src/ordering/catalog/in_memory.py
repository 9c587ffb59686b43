"""In-memory product catalog for development and testing.

Seed it with ``add_store`` / ``add_product`` / ``add_add_on`` and mutate it
with ``set_price`` / ``set_availability`` to simulate catalog drift between
cart and checkout.
"""

from dataclasses import replace

from ordering.catalog.port import AddOnInfo, ProductCatalog, ProductInfo, StoreInfo


class InMemoryCatalog(ProductCatalog):
    def __init__(self) -> None:
        self.products: dict[str, ProductInfo] = {}
        self.add_ons: dict[str, AddOnInfo] = {}
        self.stores: dict[str, StoreInfo] = {}

    def add_store(self, store_id: str, name: str = "", is_active: bool = True) -> StoreInfo:
        store = StoreInfo(store_id=store_id, name=name or store_id, is_active=is_active)
        self.stores[store_id] = store
        return store

    def add_product(
        self,
        product_id: str,
        store_id: str,
        base_price: float,
        name: str = "",
        is_available: bool = True,
        category_id: str | None = None,
    ) -> ProductInfo:
        if store_id not in self.stores:
            self.add_store(store_id)
        product = ProductInfo(
            product_id=product_id,
            store_id=store_id,
            name=name or product_id,
            base_price=base_price,
            is_available=is_available,
            category_id=category_id,
        )
        self.products[product_id] = product
        return product

    def add_add_on(self, add_on_id: str, price: float, name: str = "", is_available: bool = True) -> AddOnInfo:
        add_on = AddOnInfo(add_on_id=add_on_id, name=name or add_on_id, price=price, is_available=is_available)
        self.add_ons[add_on_id] = add_on
        return add_on

    def set_price(self, product_id: str, base_price: float) -> None:
        self.products[product_id] = replace(self.products[product_id], base_price=base_price)

    def set_availability(self, product_id: str, is_available: bool) -> None:
        self.products[product_id] = replace(self.products[product_id], is_available=is_available)

    def remove_product(self, product_id: str) -> None:
        self.products.pop(product_id, None)

    def get_product(self, product_id: str) -> ProductInfo | None:
        return self.products.get(str(product_id))

    def get_add_ons(self, add_on_ids: list[str]) -> list[AddOnInfo]:
        return [self.add_ons[str(i)] for i in add_on_ids if str(i) in self.add_ons]

    def get_store(self, store_id: str) -> StoreInfo | None:
        return self.stores.get(str(store_id))
