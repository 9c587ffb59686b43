"""FastAPI routes for the Ordering domain — cart, checkout, payments, orders."""

import json

from fastapi import APIRouter, Depends, HTTPException
from protean.utils.globals import current_domain

from ordering import settings
from ordering.api.dependencies import Caller, admin_caller, current_caller
from ordering.api.schemas import (
    AbandonedCartsResponse,
    AddCartItemRequest,
    ApplyCouponRequest,
    CancelOrderRequest,
    CartSummaryResponse,
    CartValidationResponse,
    CheckoutValidationResponse,
    ConfigureGatewayRequest,
    ConfirmCheckoutRequest,
    ConfirmPaymentRequest,
    CreatePromoCodeRequest,
    DeliveryChargesResponse,
    DetectAbandonedCartsRequest,
    GatewayConfigResponse,
    InternalNoteRequest,
    InternalNotesResponse,
    ItemIdResponse,
    OrderIdResponse,
    OrderListResponse,
    PaymentIntentResponse,
    PaymentMethodSchema,
    PaymentResultResponse,
    PromoCodeIdResponse,
    RateOrderRequest,
    ReconcileResponse,
    RefundResponse,
    ReorderResponse,
    SessionIdResponse,
    SetCartNotesRequest,
    SetDeliveryAddressRequest,
    StatusResponse,
    TotalsResponse,
    UpdateCartItemRequest,
    UpdateOrderStatusRequest,
)
from ordering.cart.abandonment import DetectAbandonedCarts
from ordering.cart.items import AddItemToCart, RemoveCartItem, UpdateCartItemQuantity
from ordering.cart.management import ClearCart, SetCartDeliveryAddress, SetCartNotes, process_cart_command
from ordering.cart.queries import get_active_cart, get_cart_summary, validate_cart
from ordering.cart.reorder import Reorder
from ordering.checkout.confirmation import ConfirmCheckout
from ordering.checkout.coupons import ApplyCoupon, RemoveCoupon
from ordering.checkout.creation import CreateCheckoutSession
from ordering.checkout.queries import (
    calculate_delivery_charges,
    get_checkout_session,
    list_payment_methods,
    validate_checkout,
)
from ordering.checkout.reconcile import ReconcileCheckout
from ordering.coupon.creation import CreatePromoCode
from ordering.exceptions import PaymentProcessingError
from ordering.gateway import get_gateway
from ordering.gateway.fake_adapter import FakeGateway
from ordering.order.cancellation import CancelOrder, StaffCancelOrder
from ordering.order.notes import AddInternalNote
from ordering.order.queries import get_order, get_order_tracking, list_orders
from ordering.order.rating import RateOrder
from ordering.order.refund import CompleteRefund
from ordering.order.status import UpdateOrderStatus
from ordering.payment.processing import PROCESSING_ERROR, ConfirmPayment, CreatePaymentIntent, MockCompletePayment

# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("")
async def read_cart(caller: Caller = Depends(current_caller)) -> dict:
    cart = get_active_cart(caller.user_id)
    return {"cart": cart.to_dict() if cart else None}


@cart_router.get("/summary", response_model=CartSummaryResponse)
async def read_cart_summary(caller: Caller = Depends(current_caller)) -> CartSummaryResponse:
    return CartSummaryResponse(**get_cart_summary(caller.user_id))


@cart_router.post("/items", status_code=201, response_model=ItemIdResponse)
async def add_cart_item(body: AddCartItemRequest, caller: Caller = Depends(current_caller)) -> ItemIdResponse:
    customization = body.customization.model_dump(exclude_none=True) if body.customization else None
    command = AddItemToCart(
        user_id=caller.user_id,
        product_id=body.product_id,
        quantity=body.quantity,
        customization=json.dumps(customization) if customization else None,
        add_on_ids=json.dumps(body.add_on_ids),
        notes=body.notes,
    )
    result = process_cart_command(command)
    return ItemIdResponse(item_id=result)


@cart_router.patch("/items/{item_id}", response_model=StatusResponse)
async def update_cart_item(
    item_id: str, body: UpdateCartItemRequest, caller: Caller = Depends(current_caller)
) -> StatusResponse:
    command = UpdateCartItemQuantity(user_id=caller.user_id, item_id=item_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="updated")


@cart_router.delete("/items/{item_id}", response_model=StatusResponse)
async def remove_cart_item(item_id: str, caller: Caller = Depends(current_caller)) -> StatusResponse:
    current_domain.process(RemoveCartItem(user_id=caller.user_id, item_id=item_id), asynchronous=False)
    return StatusResponse(status="removed")


@cart_router.delete("", response_model=StatusResponse)
async def clear_cart(caller: Caller = Depends(current_caller)) -> StatusResponse:
    current_domain.process(ClearCart(user_id=caller.user_id), asynchronous=False)
    return StatusResponse(status="cleared")


@cart_router.patch("/address", response_model=StatusResponse)
async def set_delivery_address(
    body: SetDeliveryAddressRequest, caller: Caller = Depends(current_caller)
) -> StatusResponse:
    command = SetCartDeliveryAddress(user_id=caller.user_id, address_id=body.address_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.patch("/notes", response_model=StatusResponse)
async def set_cart_notes(body: SetCartNotesRequest, caller: Caller = Depends(current_caller)) -> StatusResponse:
    current_domain.process(SetCartNotes(user_id=caller.user_id, notes=body.notes), asynchronous=False)
    return StatusResponse()


@cart_router.post("/validate", response_model=CartValidationResponse)
async def validate_current_cart(caller: Caller = Depends(current_caller)) -> CartValidationResponse:
    issues = [issue.to_dict() for issue in validate_cart(caller.user_id)]
    return CartValidationResponse(valid=not issues, issues=issues)


@cart_router.post("/maintenance/abandoned", response_model=AbandonedCartsResponse)
async def detect_abandoned_carts(
    body: DetectAbandonedCartsRequest | None = None, caller: Caller = Depends(admin_caller)
) -> AbandonedCartsResponse:
    as_of = body.as_of if body else None
    result = current_domain.process(DetectAbandonedCarts(as_of=as_of), asynchronous=False)
    return AbandonedCartsResponse(abandoned_count=result)


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("/validate", response_model=CheckoutValidationResponse)
async def validate_current_checkout(caller: Caller = Depends(current_caller)) -> CheckoutValidationResponse:
    return CheckoutValidationResponse(**validate_checkout(caller.user_id).to_dict())


@checkout_router.post("", status_code=201, response_model=SessionIdResponse)
async def create_checkout_session(caller: Caller = Depends(current_caller)) -> SessionIdResponse:
    result = current_domain.process(CreateCheckoutSession(user_id=caller.user_id), asynchronous=False)
    return SessionIdResponse(session_id=result)


@checkout_router.get("/payment-methods", response_model=list[PaymentMethodSchema])
async def payment_methods() -> list[PaymentMethodSchema]:
    return [PaymentMethodSchema(**method) for method in list_payment_methods()]


@checkout_router.get("/delivery-charges", response_model=DeliveryChargesResponse)
async def delivery_charges(address_id: str | None = None) -> DeliveryChargesResponse:
    return DeliveryChargesResponse(**calculate_delivery_charges(address_id))


@checkout_router.get("/{session_id}")
async def read_checkout_session(session_id: str, caller: Caller = Depends(current_caller)) -> dict:
    return get_checkout_session(caller.user_id, session_id).to_dict()


@checkout_router.post("/{session_id}/coupon", response_model=TotalsResponse)
async def apply_coupon(
    session_id: str, body: ApplyCouponRequest, caller: Caller = Depends(current_caller)
) -> TotalsResponse:
    command = ApplyCoupon(user_id=caller.user_id, session_id=session_id, code=body.code)
    result = current_domain.process(command, asynchronous=False)
    return TotalsResponse(**result)


@checkout_router.delete("/{session_id}/coupon", response_model=TotalsResponse)
async def remove_coupon(session_id: str, caller: Caller = Depends(current_caller)) -> TotalsResponse:
    command = RemoveCoupon(user_id=caller.user_id, session_id=session_id)
    result = current_domain.process(command, asynchronous=False)
    return TotalsResponse(**result)


@checkout_router.post("/{session_id}/confirm", status_code=201, response_model=OrderIdResponse)
async def confirm_checkout(
    session_id: str, body: ConfirmCheckoutRequest, caller: Caller = Depends(current_caller)
) -> OrderIdResponse:
    command = ConfirmCheckout(
        user_id=caller.user_id,
        session_id=session_id,
        payment_method=body.payment_method,
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only)."""
    if settings.is_production():
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
        raise_error=body.raise_error,
    )
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
        raise_error=gateway.raise_error,
    )


@payment_router.post("/{order_id}/intent", status_code=201, response_model=PaymentIntentResponse)
async def create_payment_intent(order_id: str, caller: Caller = Depends(current_caller)) -> PaymentIntentResponse:
    command = CreatePaymentIntent(order_id=order_id, user_id=caller.user_id)
    result = current_domain.process(command, asynchronous=False)
    return PaymentIntentResponse(**result)


@payment_router.post("/{order_id}/confirm", response_model=PaymentResultResponse)
async def confirm_payment(
    order_id: str, body: ConfirmPaymentRequest, caller: Caller = Depends(current_caller)
) -> PaymentResultResponse:
    command = ConfirmPayment(
        order_id=order_id,
        user_id=caller.user_id,
        payment_method=body.payment_method,
        provider_transaction_id=body.provider_transaction_id,
    )
    result = current_domain.process(command, asynchronous=False)
    # The failed payment is already committed at this point
    if result.error == PROCESSING_ERROR:
        raise PaymentProcessingError(result.message, order_id=order_id)
    return PaymentResultResponse(**result.to_dict())


@payment_router.post("/{order_id}/mock-complete", response_model=PaymentResultResponse)
async def mock_complete_payment(order_id: str, caller: Caller = Depends(current_caller)) -> PaymentResultResponse:
    """Complete a payment without a provider (non-production only, owner or admin)."""
    command = MockCompletePayment(order_id=order_id, user_id=caller.user_id, actor_role=caller.role)
    result = current_domain.process(command, asynchronous=False)
    return PaymentResultResponse(**result.to_dict())


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=OrderListResponse)
async def read_orders(
    status: str | None = None,
    store_id: str | None = None,
    user_id: str | None = None,
    page: int = 1,
    limit: int = 20,
    caller: Caller = Depends(current_caller),
) -> OrderListResponse:
    """Customers get their own orders. ``user_id`` narrows an admin's view to one customer."""
    result = list_orders(
        caller.user_id,
        caller.role,
        status=status,
        store_id=store_id,
        owner_id=user_id,
        page=page,
        limit=limit,
    )
    return OrderListResponse(**result)


@order_router.get("/{order_id}")
async def read_order(order_id: str, caller: Caller = Depends(current_caller)) -> dict:
    return get_order(order_id, caller.user_id, caller.role).view_for(caller.role)


@order_router.get("/{order_id}/tracking")
async def read_order_tracking(order_id: str, caller: Caller = Depends(current_caller)) -> dict:
    return get_order_tracking(order_id, caller.user_id, caller.role)


@order_router.post("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(
    order_id: str, body: CancelOrderRequest, caller: Caller = Depends(current_caller)
) -> StatusResponse:
    if caller.is_staff:
        command = StaffCancelOrder(order_id=order_id, reason=body.reason, cancelled_by=caller.role)
    else:
        command = CancelOrder(order_id=order_id, user_id=caller.user_id, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="cancelled")


@order_router.patch("/{order_id}/status", response_model=StatusResponse)
async def update_order_status(
    order_id: str, body: UpdateOrderStatusRequest, caller: Caller = Depends(current_caller)
) -> StatusResponse:
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        actor_role=caller.role,
        notes=body.notes,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status=body.status)


@order_router.post("/{order_id}/rating", response_model=StatusResponse)
async def rate_order(order_id: str, body: RateOrderRequest, caller: Caller = Depends(current_caller)) -> StatusResponse:
    command = RateOrder(order_id=order_id, user_id=caller.user_id, rating=body.rating, review=body.review)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="rated")


@order_router.patch("/{order_id}/notes", response_model=InternalNotesResponse)
async def add_internal_note(
    order_id: str, body: InternalNoteRequest, caller: Caller = Depends(current_caller)
) -> InternalNotesResponse:
    command = AddInternalNote(order_id=order_id, note=body.notes, actor_role=caller.role)
    result = current_domain.process(command, asynchronous=False)
    return InternalNotesResponse(internal_notes=result)


@order_router.post("/{order_id}/refund", response_model=RefundResponse)
async def complete_refund(order_id: str, caller: Caller = Depends(admin_caller)) -> RefundResponse:
    result = current_domain.process(CompleteRefund(order_id=order_id), asynchronous=False)
    return RefundResponse(**result)


@order_router.post("/{order_id}/reorder", status_code=201, response_model=ReorderResponse)
async def reorder(order_id: str, caller: Caller = Depends(current_caller)) -> ReorderResponse:
    result = process_cart_command(Reorder(user_id=caller.user_id, order_id=order_id))
    return ReorderResponse(**result)


@order_router.post("/{order_id}/reconcile", response_model=ReconcileResponse)
async def reconcile_checkout(order_id: str, caller: Caller = Depends(admin_caller)) -> ReconcileResponse:
    result = current_domain.process(ReconcileCheckout(order_id=order_id), asynchronous=False)
    return ReconcileResponse(repaired=result)


# ---------------------------------------------------------------------------
# Promo Code Router
# ---------------------------------------------------------------------------
promo_router = APIRouter(prefix="/promo-codes", tags=["promo-codes"])


@promo_router.post("", status_code=201, response_model=PromoCodeIdResponse)
async def create_promo_code(
    body: CreatePromoCodeRequest, caller: Caller = Depends(admin_caller)
) -> PromoCodeIdResponse:
    command = CreatePromoCode(
        code=body.code,
        description=body.description,
        discount_type=body.discount_type,
        discount_value=body.discount_value,
        min_order_amount=body.min_order_amount,
        max_discount_amount=body.max_discount_amount,
        usage_limit=body.usage_limit,
        user_usage_limit=body.user_usage_limit,
        valid_from=body.valid_from,
        valid_until=body.valid_until,
        is_active=body.is_active,
        applicable_store_ids=json.dumps(body.applicable_store_ids),
        applicable_category_ids=json.dumps(body.applicable_category_ids),
    )
    result = current_domain.process(command, asynchronous=False)
    return PromoCodeIdResponse(promo_code_id=result)
