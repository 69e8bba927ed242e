"""Couche d’accès aux données (Supabase) pour les clients connectés.
Identité depuis un access token et profil de livraison (table user_profiles).
Les exceptions sont « catchées » et transformées en valeurs neutres (None, False) afin de ne pas casser le checkout.
"""
from typing import Any, Dict, Optional
import logging
import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = (
    "shipping_address1, shipping_address2, shipping_city, shipping_state, "
    "shipping_zip_code, shipping_country, phone"
)

def get_user_from_access_token(access_token: str) -> Dict[str, Any]:
    """Récupère et normalise l’utilisateur depuis supabase.auth.get_user(access_token)."""
    res = supabase_client.get_supabase().auth.get_user(access_token)
    user = getattr(res, "user", None) or {}
    if not isinstance(user, dict):
        user = {
            "id": getattr(user, "id", None),
            "email": getattr(user, "email", None),
            "user_metadata": getattr(user, "user_metadata", None) or {},
        }
    return user or {}

def fetch_shipping_profile(user_id: str, user_token: str) -> Optional[Dict[str, Any]]:
    """Profil de livraison enregistré (colonnes shipping_* + phone) ou None."""
    if not user_id or not user_token:
        return None
    try:
        client = supabase_client.get_user_supabase(user_token)
        return supabase_client.fetch_single_row(client, "user_profiles", PROFILE_COLUMNS, user_id)
    except Exception:
        logger.exception("users.repository.fetch_shipping_profile failed user_id=%s", user_id)
        return None

def update_shipping_profile(user_id: str, user_token: str, fields: Dict[str, Any]) -> bool:
    """Met à jour les colonnes de livraison du profil (RLS: le client ne modifie que sa ligne)."""
    if not user_id or not user_token or not fields:
        return False
    try:
        (
            supabase_client.get_user_supabase(user_token)
            .table("user_profiles")
            .update(fields)
            .eq("id", user_id)
            .execute()
        )
        return True
    except Exception:
        logger.exception("users.repository.update_shipping_profile failed user_id=%s", user_id)
        return False
