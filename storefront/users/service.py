"""
Cas d’usage « profil client » du checkout.
- load_shipping_profile: lit le profil et le traduit en champs ShippingInfo (noms Python)
- save_shipping_profile: écrit l'adresse saisie sur le profil (True/False, jamais d'exception)
Seuls les clients connectés (user avec id + token) sont concernés; l'invité passe toujours.
"""
from typing import Any, Dict, Optional

from storefront.checkout.models import ShippingInfo
from . import repository

# colonne user_profiles -> champ ShippingInfo
PROFILE_TO_SHIPPING = {
    "shipping_address1": "address1",
    "shipping_address2": "address2",
    "shipping_city": "city",
    "shipping_state": "state",
    "shipping_zip_code": "zip_code",
    "shipping_country": "country",
    "phone": "phone",
}


def _identity(user: Optional[Dict[str, Any]]):
    user = user or {}
    return user.get("id"), user.get("token")


def profile_to_shipping(row: Optional[Dict[str, Any]]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for column, field in PROFILE_TO_SHIPPING.items():
        value = (row or {}).get(column)
        if value:
            out[field] = str(value)
    return out


def shipping_to_profile(info: ShippingInfo) -> Dict[str, Any]:
    data = info.model_dump()
    return {column: data.get(field) or None for column, field in PROFILE_TO_SHIPPING.items()}


def load_shipping_profile(user: Optional[Dict[str, Any]]) -> Dict[str, str]:
    user_id, token = _identity(user)
    if not user_id or not token:
        return {}
    return profile_to_shipping(repository.fetch_shipping_profile(user_id, token))


def save_shipping_profile(user: Optional[Dict[str, Any]], info: ShippingInfo) -> bool:
    user_id, token = _identity(user)
    if not user_id or not token:
        return False
    return repository.update_shipping_profile(user_id, token, shipping_to_profile(info))
