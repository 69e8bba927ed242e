from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from storefront.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root():
    return {"ok": True}

@router.get("/redis")
async def health_redis(request: Request):
    """Emplacement des paniers (Redis) + état du rate limiting."""
    storage = getattr(request.app.state, "cart_storage", None)
    ok = bool(storage) and await storage.ping()
    return JSONResponse(
        {"ok": ok, "rate_limit": rate_limit_health_info(request)},
        status_code=200 if ok else 503,
    )
