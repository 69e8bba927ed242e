"""
Remise au processeur de paiement externe.

Le collaborateur d'initialisation renvoie {paymentUrl, paymentData}. Le navigateur doit poster
exactement ces champs, dans cet ordre, vers exactement cette URL (le processeur signe les valeurs):
- chaînes transmises telles quelles
- booléens JSON en "true"/"false"
- nombres par leur littéral d'origine (JSON décodé en JsonNumber: "100.00" et "1e5" restent tels quels)
Le HTML n'applique qu'un échappement d'attribut, annulé par le navigateur à la soumission.
"""
from decimal import Decimal
from typing import Any, Mapping, Tuple
import json

from pydantic import BaseModel, ConfigDict

from storefront.utils.templates import render_to_string, templates

HANDOFF_TEMPLATE = "payment_handoff.html"


class JsonNumber(Decimal):
    """Nombre JSON décodé qui se rend par son littéral d'origine ("1e5" reste "1e5")."""

    def __new__(cls, literal: str):
        number = super().__new__(cls, literal)
        number.literal = literal
        return number

    def __str__(self) -> str:
        return self.literal


class PaymentHandoff(BaseModel):
    model_config = ConfigDict(frozen=True)

    redirect_url: str
    fields: Tuple[Tuple[str, str], ...] = ()

    def as_dict(self) -> dict:
        return dict(self.fields)


def field_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, Decimal)):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if value is None:
        return ""
    return json.dumps(value, separators=(",", ":"), default=float)


def build_handoff(redirect_url: str, form_fields: Mapping[str, Any]) -> PaymentHandoff:
    return PaymentHandoff(
        redirect_url=redirect_url,
        fields=tuple((str(name), field_value(value)) for name, value in (form_fields or {}).items()),
    )


def handoff_html(handoff: PaymentHandoff) -> str:
    return render_to_string(HANDOFF_TEMPLATE, handoff=handoff)


def render_handoff_form(request, handoff: PaymentHandoff, status_code: int = 200):
    """Page HTML: formulaire POST caché, soumis automatiquement au chargement."""
    return templates.TemplateResponse(
        request,
        HANDOFF_TEMPLATE,
        {"handoff": handoff},
        status_code=status_code,
    )
