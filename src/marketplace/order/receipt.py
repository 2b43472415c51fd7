"""Receipt snapshot issued when a seller accepts an order.

A receipt captures the parties, the animals and the logistics exactly as they
stood at acceptance. It is built once, stored as JSON on the order and never
rebuilt from live data afterwards: later edits to a profile or a listing do
not change an issued receipt.

Building is null-safe. A missing profile, ranch or product leaves the matching
fields empty instead of failing the acceptance.
"""

from dataclasses import asdict, dataclass
from datetime import date, datetime

from marketplace.order.order import PickupLocation

RECEIPT_VERSION = 1

DELIVERY_METHODS = {
    "buyer_transport": (
        "Buyer provides transport",
        "The buyer collects the cattle with their own transport.",
    ),
    "seller_transport": (
        "Seller provides transport",
        "The seller arranges moving the cattle to the buyer's address.",
    ),
    "external_delivery": (
        "Third-party delivery service",
        "A contracted third-party carrier delivers the cattle.",
    ),
    "platform_delivery": (
        "Platform-managed delivery",
        "The marketplace handles logistics and shipment tracking.",
    ),
}
UNSPECIFIED_METHOD = ("Unspecified method", None)

PICKUP_LOCATION_LABELS = {
    PickupLocation.RANCH.value: "At the ranch",
    PickupLocation.OTHER.value: "Other location",
}


def receipt_number_for(order_id, created_at: datetime | date, prefix: str) -> str:
    """``<PREFIX>-<id>-<YYYYMMDD>``.

    Numeric ids are zero-padded to 8 digits. Any other id (a uuid, usually)
    contributes its first 12 hexadecimal characters, upper-cased.
    """
    identifier = str(order_id)
    if identifier.isdigit():
        token = identifier.zfill(8)
    else:
        token = identifier.replace("-", "")[:12].upper()
    return f"{prefix}-{token}-{created_at:%Y%m%d}"


def describe_delivery_method(code: str | None) -> tuple[str, str | None]:
    """Return the ``(label, description)`` of a delivery method code."""
    return DELIVERY_METHODS.get(code, UNSPECIFIED_METHOD)


@dataclass(frozen=True)
class SellerBlock:
    name: str | None
    ranch_name: str | None
    legal_name: str | None
    tax_id: str | None
    address: str | None
    phone: str | None
    email: str | None


@dataclass(frozen=True)
class BuyerBlock:
    name: str | None
    ci_number: str | None
    address: str | None


@dataclass(frozen=True)
class ProductBlock:
    title: str | None
    type: str | None
    breed: str | None
    quantity: int
    unit_price: float
    total_price: float
    currency: str | None


@dataclass(frozen=True)
class DeliveryBlock:
    method: str
    method_code: str | None
    description: str | None
    pickup_location: str | None
    pickup_address: str | None
    delivery_address: str | None
    cost: float
    cost_currency: str | None
    provider: str | None
    tracking_number: str | None
    expected_date: str | None
    notes: str | None


@dataclass(frozen=True)
class NotesBlock:
    buyer: str | None
    seller: str | None


@dataclass(frozen=True)
class Receipt:
    receipt_number: str
    issue_date: str | None
    seller: SellerBlock
    buyer: BuyerBlock
    product: ProductBlock
    delivery: DeliveryBlock
    notes: NotesBlock
    version: int = RECEIPT_VERSION

    def as_dict(self) -> dict:
        return asdict(self)


def _get(record, name: str):
    return getattr(record, name, None) if record is not None else None


def pickup_address_for(order, ranch=None) -> str | None:
    """The order's own pickup address for ``other`` locations, else the ranch address."""
    if order.pickup_location == PickupLocation.OTHER.value:
        return order.pickup_address
    return _get(ranch, "address")


def build_receipt(order, product=None, buyer=None, seller=None, ranch=None, issued_at=None) -> Receipt:
    """Assemble the receipt of an accepted order.

    ``order`` must already carry its receipt number. ``issued_at`` defaults to
    the order's ``accepted_at``. The same inputs always produce the same
    receipt.
    """
    issued_at = issued_at or order.accepted_at
    pickup_address = pickup_address_for(order, ranch)
    method, description = describe_delivery_method(order.delivery_method)
    expected = order.expected_pickup_date

    return Receipt(
        receipt_number=order.receipt_number,
        issue_date=issued_at.strftime("%Y-%m-%d %H:%M:%S") if issued_at else None,
        seller=SellerBlock(
            name=_get(seller, "full_name"),
            ranch_name=_get(ranch, "name"),
            legal_name=_get(ranch, "legal_name"),
            tax_id=_get(ranch, "tax_id"),
            address=pickup_address,
            phone=_get(seller, "phone") or _get(ranch, "phone"),
            email=_get(seller, "email") or _get(ranch, "email"),
        ),
        buyer=BuyerBlock(
            name=_get(buyer, "full_name"),
            ci_number=_get(buyer, "ci_number"),
            address=order.delivery_address,
        ),
        product=ProductBlock(
            title=_get(product, "title"),
            type=_get(product, "animal_type"),
            breed=_get(product, "breed"),
            quantity=order.quantity,
            unit_price=order.unit_price,
            total_price=order.total_price,
            currency=order.currency,
        ),
        delivery=DeliveryBlock(
            method=method,
            method_code=order.delivery_method,
            description=description,
            pickup_location=PICKUP_LOCATION_LABELS.get(order.pickup_location),
            pickup_address=pickup_address,
            delivery_address=order.delivery_address,
            cost=float(order.delivery_cost or 0.0),
            cost_currency=order.delivery_cost_currency,
            provider=order.delivery_provider,
            tracking_number=order.delivery_tracking_number,
            expected_date=expected.isoformat() if expected else None,
            notes=order.pickup_notes,
        ),
        notes=NotesBlock(buyer=order.buyer_notes, seller=order.seller_notes),
    )
