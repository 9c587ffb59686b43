"""Catalog checks shared by the cart and checkout.

Lines (cart items or checkout lines) carry the price that was locked when
the product was added. These helpers compare that snapshot with what the
catalog says now and describe every difference as a ``CartIssue``.
"""

from dataclasses import asdict, dataclass

from protean.exceptions import ValidationError

from ordering.catalog import get_catalog
from ordering.catalog.port import ProductCatalog, ProductInfo
from ordering.pricing import ZERO, round_money, to_decimal

PRICE_TOLERANCE = 0.005


@dataclass(frozen=True)
class CartIssue:
    code: str
    message: str
    item_id: str | None = None
    product_id: str | None = None
    locked_price: float | None = None
    current_price: float | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def resolve_unit_price(catalog: ProductCatalog, product: ProductInfo, add_on_ids: list[str]) -> float:
    """Base price plus the price of every requested add-on."""
    add_ons = [a for a in catalog.get_add_ons(add_on_ids) if a.is_available]
    missing = sorted(set(add_on_ids) - {a.add_on_id for a in add_ons})
    if missing:
        raise ValidationError({"add_on_ids": [f"Add-ons not available: {', '.join(missing)}"]})

    price = to_decimal(product.base_price) + sum((to_decimal(a.price) for a in add_ons), ZERO)
    return float(round_money(price))


def inspect_lines(lines, store_id=None) -> list[CartIssue]:
    catalog = get_catalog()
    issues = []

    if store_id:
        store = catalog.get_store(str(store_id))
        if store is None or not store.is_active:
            issues.append(CartIssue(code="store_inactive", message="Store is not accepting orders"))

    for line in lines:
        item_id = str(line.id)
        product = catalog.get_product(str(line.product_id))
        if product is None:
            issues.append(
                CartIssue(
                    code="product_missing",
                    message=f"Product {line.product_id} no longer exists",
                    item_id=item_id,
                    product_id=str(line.product_id),
                )
            )
            continue

        if not product.is_available:
            issues.append(
                CartIssue(
                    code="product_unavailable",
                    message=f"{product.name} is currently unavailable",
                    item_id=item_id,
                    product_id=product.product_id,
                )
            )
            continue

        try:
            current_price = resolve_unit_price(catalog, product, line.add_on_list)
        except ValidationError:
            issues.append(
                CartIssue(
                    code="add_on_unavailable",
                    message=f"An add-on for {product.name} is unavailable",
                    item_id=item_id,
                    product_id=product.product_id,
                )
            )
            continue

        if abs(current_price - line.unit_price) > PRICE_TOLERANCE:
            issues.append(
                CartIssue(
                    code="price_changed",
                    message=f"Price of {product.name} changed from {line.unit_price:.2f} to {current_price:.2f}",
                    item_id=item_id,
                    product_id=product.product_id,
                    locked_price=line.unit_price,
                    current_price=current_price,
                )
            )

    return issues
