"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CustomizationSchema(BaseModel):
    size: str | None = None
    sugar_level: str | None = None
    ice_level: str | None = None
    coffee_level: str | None = None


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)
    customization: CustomizationSchema | None = None
    add_on_ids: list[str] = Field(default_factory=list)
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-iced-latte",
                    "quantity": 2,
                    "customization": {"size": "large", "sugar_level": "50%", "ice_level": "less"},
                    "add_on_ids": ["addon-extra-shot"],
                }
            ]
        }
    }


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(ge=1)


class SetDeliveryAddressRequest(BaseModel):
    address_id: str | None = None


class SetCartNotesRequest(BaseModel):
    notes: str | None = None


class DetectAbandonedCartsRequest(BaseModel):
    as_of: datetime | None = None


class ItemIdResponse(BaseModel):
    item_id: str


class CartIssueSchema(BaseModel):
    code: str
    message: str
    item_id: str | None = None
    product_id: str | None = None
    locked_price: float | None = None
    current_price: float | None = None


class CartValidationResponse(BaseModel):
    valid: bool
    issues: list[CartIssueSchema]


class CartSummaryResponse(BaseModel):
    cart_id: str | None
    item_count: int
    subtotal: float
    discount: float
    tax: float
    delivery_fee: float
    total: float
    currency: str


class AbandonedCartsResponse(BaseModel):
    abandoned_count: int


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class ApplyCouponRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)


class ConfirmCheckoutRequest(BaseModel):
    payment_method: str

    model_config = {"json_schema_extra": {"examples": [{"payment_method": "cash"}]}}


class SessionIdResponse(BaseModel):
    session_id: str


class TotalsResponse(BaseModel):
    subtotal: float
    discount: float
    tax: float
    delivery_fee: float
    total: float
    currency: str


class CheckoutValidationResponse(BaseModel):
    valid: bool
    errors: list[str]
    warnings: list[str]


class DeliveryChargesResponse(BaseModel):
    address_id: str | None
    delivery_fee: float
    currency: str


class PaymentMethodSchema(BaseModel):
    id: str
    name: str
    description: str


class OrderIdResponse(BaseModel):
    order_id: str


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class ConfirmPaymentRequest(BaseModel):
    payment_method: str | None = None
    provider_transaction_id: str | None = None


class PaymentIntentResponse(BaseModel):
    intent_id: str
    provider_reference: str
    amount: float
    currency: str
    payment_method: str


class PaymentResultResponse(BaseModel):
    success: bool
    message: str
    order: dict
    error: str | None = None


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Payment declined"
    raise_error: bool = False


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
    raise_error: bool


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class CancelOrderRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class UpdateOrderStatusRequest(BaseModel):
    status: str
    notes: str | None = None


class RefundResponse(BaseModel):
    success: bool
    refund_status: str | None
    refund_reference: str | None = None
    failure_reason: str | None = None


class ReorderResponse(BaseModel):
    cart_id: str
    added_product_ids: list[str]
    skipped_product_ids: list[str]


class ReconcileResponse(BaseModel):
    repaired: list[str]


class RateOrderRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    review: str | None = Field(default=None, max_length=1000)


class InternalNoteRequest(BaseModel):
    notes: str = Field(min_length=1, max_length=1000)


class InternalNotesResponse(BaseModel):
    internal_notes: str


class OrderListItem(BaseModel):
    id: str
    order_number: str
    status: str
    payment_status: str
    total: float
    user_id: str
    store_id: str | None = None
    created_at: datetime | None = None
    rating: int | None = None


class PaginationSchema(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class OrderListResponse(BaseModel):
    orders: list[OrderListItem]
    pagination: PaginationSchema


# ---------------------------------------------------------------------------
# Promo codes
# ---------------------------------------------------------------------------
class CreatePromoCodeRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    description: str | None = None
    discount_type: str
    discount_value: float = Field(ge=0)
    min_order_amount: float = Field(ge=0, default=0.0)
    max_discount_amount: float | None = Field(ge=0, default=None)
    usage_limit: int | None = Field(ge=0, default=None)
    user_usage_limit: int | None = Field(ge=0, default=None)
    valid_from: datetime
    valid_until: datetime
    is_active: bool = True
    applicable_store_ids: list[str] = Field(default_factory=list)
    applicable_category_ids: list[str] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "code": "SAVE20",
                    "discount_type": "percentage",
                    "discount_value": 20,
                    "min_order_amount": 5,
                    "max_discount_amount": 10,
                    "valid_from": "2026-01-01T00:00:00Z",
                    "valid_until": "2026-12-31T23:59:59Z",
                }
            ]
        }
    }


class PromoCodeIdResponse(BaseModel):
    promo_code_id: str


class StatusResponse(BaseModel):
    status: str = "ok"
