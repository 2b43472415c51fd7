"""Profile aggregate — the marketplace identity of a buyer or seller.

Profiles are owned by the account/KYC services; the order lifecycle only
reads them (receipt assembly, self-purchase checks). The fields kept here are
the ones those reads need.
"""

from protean.fields import String, Text

from marketplace.domain import marketplace


@marketplace.aggregate
class Profile:
    first_name = String(required=True, max_length=100)
    middle_name = String(max_length=100)
    last_name = String(required=True, max_length=100)
    ci_number = String(max_length=30)  # National identity document number
    email = String(max_length=254)
    phone = String(max_length=30)
    address = Text()

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.middle_name, self.last_name) if part)
