"""
Règles de prix du checkout (calcul pur, sans effet de bord).
- livraison offerte à partir du seuil, forfait sinon
- taxe = sous-total x taux, arrondie au centime (demi-supérieur)
"""
from decimal import Decimal, ROUND_HALF_UP

from pydantic import BaseModel, ConfigDict

from storefront.config import FLAT_SHIPPING_FEE, FREE_SHIPPING_THRESHOLD, TAX_RATE
from .models import DerivedTotals

CENT = Decimal("0.01")


class PricingRules(BaseModel):
    model_config = ConfigDict(frozen=True)

    free_shipping_threshold: Decimal = FREE_SHIPPING_THRESHOLD
    flat_shipping_fee: Decimal = FLAT_SHIPPING_FEE
    tax_rate: Decimal = TAX_RATE


def compute_totals(subtotal: Decimal, rules: PricingRules) -> DerivedTotals:
    subtotal = Decimal(subtotal)
    shipping_cost = Decimal("0") if subtotal >= rules.free_shipping_threshold else rules.flat_shipping_fee
    tax_amount = (subtotal * rules.tax_rate).quantize(CENT, rounding=ROUND_HALF_UP)
    return DerivedTotals(
        subtotal=subtotal,
        shipping_cost=shipping_cost,
        tax_amount=tax_amount,
        grand_total=subtotal + shipping_cost + tax_amount,
    )
