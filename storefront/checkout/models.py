# module storefront.checkout.models
from decimal import Decimal
from enum import IntEnum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storefront.utils.validators import blank_fields, is_valid_email


class CheckoutStep(IntEnum):
    REVIEW = 1
    SHIPPING = 2
    PAYMENT = 3
    CONFIRMATION = 4


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Champs obligatoires avant de quitter l'étape Livraison (noms Python)
REQUIRED_SHIPPING_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "address1",
    "city",
    "state",
    "zip_code",
    "country",
)


class ShippingInfo(_CamelModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    address1: str = ""
    address2: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = "US"

    def invalid_fields(self) -> List[str]:
        """
        Champs manquants ou invalides, en camelCase (format affiché par l'UI).
        L'email doit en plus ressembler à une adresse.
        """
        missing = blank_fields(self.model_dump(), REQUIRED_SHIPPING_FIELDS)
        if "email" not in missing and not is_valid_email(self.email):
            missing.append("email")
        return [to_camel(name) for name in missing]


class ShippingSubmission(_CamelModel):
    shipping_info: ShippingInfo
    save_to_profile: bool = False


class DerivedTotals(_CamelModel):
    subtotal: Decimal = Decimal("0")
    shipping_cost: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    grand_total: Decimal = Decimal("0")


class Order(_CamelModel):
    """Commande renvoyée par le collaborateur de création (orderNumber ou order_number)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    order_number: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("orderNumber", "order_number"),
    )


class PendingOrder(_CamelModel):
    """
    Commande créée dont le paiement n'a pas pu être initialisé; réutilisée au prochain essai
    tant que le panier (lignes, quantités, prix) et le montant sont inchangés.
    """
    order: Order
    amount: Decimal
    lines_fingerprint: str = Field(default="", exclude=True)

    def matches(self, fingerprint: str, amount: Decimal) -> bool:
        return self.lines_fingerprint == fingerprint and self.amount == amount


class CheckoutSession(_CamelModel):
    step: CheckoutStep = CheckoutStep.REVIEW
    cart_snapshot_errors: List[str] = Field(default_factory=list)
    shipping_info: ShippingInfo = Field(default_factory=ShippingInfo)
    derived_totals: DerivedTotals = Field(default_factory=DerivedTotals)
    message: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    order: Optional[Order] = None
    pending_order: Optional[PendingOrder] = None
    returned_order_id: Optional[str] = None

    def to_public(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
