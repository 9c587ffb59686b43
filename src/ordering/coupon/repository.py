"""Repository for the PromoCode aggregate."""

from ordering.coupon.promo_code import PromoCode, normalize_code
from ordering.domain import ordering


@ordering.repository(part_of=PromoCode)
class PromoCodeRepository:
    def find_by_code(self, code: str) -> PromoCode | None:
        codes = self._dao.query.filter(code=normalize_code(code)).all().items
        return codes[0] if codes else None
