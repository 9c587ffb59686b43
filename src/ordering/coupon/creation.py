"""Promo code creation — command and handler (admin only at the API edge)."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.coupon.promo_code import PromoCode
from ordering.domain import ordering


@ordering.command(part_of="PromoCode")
class CreatePromoCode:
    code = String(required=True, max_length=50)
    description = Text()
    discount_type = String(required=True, max_length=20)
    discount_value = Float(required=True, min_value=0.0)
    min_order_amount = Float(default=0.0)
    max_discount_amount = Float()
    usage_limit = Integer()
    user_usage_limit = Integer()
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    is_active = Boolean(default=True)
    applicable_store_ids = Text()  # JSON array
    applicable_category_ids = Text()  # JSON array


@ordering.command_handler(part_of=PromoCode)
class CreatePromoCodeHandler:
    @handle(CreatePromoCode)
    def create_promo_code(self, command):
        repo = current_domain.repository_for(PromoCode)
        if repo.find_by_code(command.code) is not None:
            raise ValidationError({"code": [f"Promo code {command.code.strip().upper()} already exists"]})

        promo = PromoCode.create(
            code=command.code,
            description=command.description,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            min_order_amount=command.min_order_amount,
            max_discount_amount=command.max_discount_amount,
            usage_limit=command.usage_limit,
            user_usage_limit=command.user_usage_limit,
            valid_from=command.valid_from,
            valid_until=command.valid_until,
            is_active=command.is_active if command.is_active is not None else True,
            applicable_store_ids=json.loads(command.applicable_store_ids) if command.applicable_store_ids else None,
            applicable_category_ids=(
                json.loads(command.applicable_category_ids) if command.applicable_category_ids else None
            ),
        )
        repo.add(promo)
        return str(promo.id)
