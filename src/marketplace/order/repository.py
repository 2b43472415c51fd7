"""Repository for the Order aggregate."""

from protean.exceptions import ValidationError

from marketplace.domain import marketplace
from marketplace.order.order import Order, OrderStatus

ROLES = ("buyer", "seller")


@marketplace.repository(part_of=Order)
class OrderRepository:
    def for_profile(self, profile_id, role: str = "buyer", status: str | None = None) -> list[Order]:
        """Orders where the profile is the buyer (or the seller), newest first."""
        if role not in ROLES:
            raise ValidationError({"role": [f"Role must be one of: {', '.join(ROLES)}"]})

        criteria = {f"{role}_profile_id": str(profile_id)}
        if status:
            if status not in {s.value for s in OrderStatus}:
                raise ValidationError({"status": [f"Unknown order status '{status}'"]})
            criteria["status"] = status
        return self._dao.query.filter(**criteria).order_by("-created_at").all().items
