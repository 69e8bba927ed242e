from fastapi import Request
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

COOKIE_NAME = "sb_access"

def access_token_from_request(request: Request) -> Optional[str]:
    # Hybride: priorité au Bearer, fallback cookie
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        if token:
            return token
    return request.cookies.get(COOKIE_NAME) or None

def get_optional_user(request: Request) -> Optional[Dict[str, Any]]:
    """
    Identité facultative: le checkout invité est toujours permis.
    - Token absent, invalide ou expiré: None (jamais de 401)
    - Sinon: {id, email, metadata, token}
    """
    token = access_token_from_request(request)
    if not token:
        return None
    try:
        from storefront.users.repository import get_user_from_access_token
        user = get_user_from_access_token(token)
    except Exception:
        logger.exception("security.get_optional_user token lookup failed")
        return None
    if not user.get("id"):
        return None
    return {
        "id": user.get("id"),
        "email": user.get("email"),
        "metadata": user.get("user_metadata") or {},
        "token": token,
    }
