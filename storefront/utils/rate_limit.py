from typing import Optional, Dict, Any
from fastapi import Request, Response, HTTPException
from urllib.parse import urlparse
import hashlib
import logging
import os
import time

from storefront.config import CART_REDIS_URL
from storefront.utils.security import COOKIE_NAME

logger = logging.getLogger(__name__)

def _shopper_key(request: Request) -> str:
    # Priorité: panier de la session, puis token client (hashé), puis IP
    path = request.url.path
    session = request.scope.get("session") or {}
    cart_id = session.get("cart_id")
    if cart_id:
        return f"cart:{cart_id}:{path}"
    token = request.cookies.get(COOKIE_NAME)
    if token:
        h = hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]
        return f"user:{h}:{path}"
    ip = request.client.host if request.client else "local"
    return f"ip:{ip}:{path}"

def _local_hit(request: Request, key: str, times: int, seconds: int) -> None:
    now = time.time()
    store: Dict[str, list] = getattr(request.app.state, "_rl_store", None) or {}
    hits = [t for t in store.get(key, []) if now - t < seconds]
    if len(hits) >= times:
        raise HTTPException(status_code=429, detail="Too Many Requests")
    hits.append(now)
    store[key] = hits
    request.app.state._rl_store = store

def optional_rate_limit(times: int, seconds: int):
    """
    Dépendance de limitation de débit tolérante:
    - LOCAL_RATE_LIMIT_FALLBACK=1: compteur mémoire par processus
    - app.state.rate_limit_enabled False: aucune limite
    - sinon fastapi-limiter (Redis); une erreur du limiteur ne bloque jamais le client
    """
    async def _dep(request: Request, response: Response):
        key = _shopper_key(request)
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            _local_hit(request, key, times, seconds)
            return

        if getattr(request.app.state, "rate_limit_enabled", None) is False:
            return

        from fastapi_limiter.depends import RateLimiter

        async def _identifier(req: Request) -> str:
            return _shopper_key(req)

        try:
            await RateLimiter(times=times, seconds=seconds, identifier=_identifier)(request, response)
        except HTTPException:
            raise
        except Exception:
            logger.exception("rate_limit limiter unavailable key=%s", key)
    return _dep

def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)
    from fastapi_limiter import FastAPILimiter
    ready = getattr(FastAPILimiter, "redis", None) is not None

    info: Dict[str, Any] = {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": ready,
        "backend": "redis" if ready else None,
    }
    redis_info: Optional[Dict[str, Any]] = None
    if ready and CART_REDIS_URL:
        p = urlparse(CART_REDIS_URL)
        redis_info = {"scheme": p.scheme, "host": p.hostname, "port": p.port}
    if redis_info:
        info["redis"] = redis_info
    return info
