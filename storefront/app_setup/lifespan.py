"""
Lifespan FastAPI: initialisation/arrêt des ressources partagées.
- Client Redis asynchrone (paniers + rate limiting), fakeredis en tests
- FastAPILimiter, avec options de test et fallback
- httpx.AsyncClient partagé par les collaborateurs commande/paiement
- StockValidator et registre des sessions acheteur (app.state.sessions)
Variables d’environnement supportées:
  - USE_FAKE_REDIS_FOR_TESTS=1: utilise fakeredis (tests)
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: n'initialise pas le rate limiting (tests)
  - LOCAL_RATE_LIMIT_FALLBACK=1: active un fallback local si l’init échoue
"""
import os
import logging
from contextlib import asynccontextmanager

import httpx
import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter

from storefront.config import (
    CART_MERGE_POLICY,
    CART_QUANTITY_CEILING,
    CART_REDIS_URL,
    COLLABORATOR_TIMEOUT,
    COMMERCE_API_URL,
    STOCK_LOOKUP_POLICY,
)
from storefront.cart.storage import RedisCartStorage
from storefront.checkout.collaborators import OrdersClient, PaymentsClient
from storefront.checkout.pricing import PricingRules
from storefront.inventory.service import StockValidator
from storefront.sessions import ShopperSessions

logger = logging.getLogger("uvicorn.error")


def build_redis():
    if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
        from fakeredis.aioredis import FakeRedis  # tests only
        return FakeRedis(decode_responses=True)
    return aioredis.from_url(CART_REDIS_URL, encoding="utf-8", decode_responses=True)


async def init_rate_limiter(app: FastAPI, redis_client) -> None:
    """
    Configure le rate limiting et gère les fallbacks.
    - En cas d’échec de Redis et sans fallback, le rate limiting est désactivé proprement.
    """
    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        app.state.rate_limit_enabled = False
        logger.info("Rate limiting disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
        return
    try:
        await FastAPILimiter.init(redis_client)
        app.state.rate_limit_enabled = True
        logger.info("Rate limiting enabled")
    except Exception as e:
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            app.state.rate_limit_enabled = True
            logger.warning("Rate limiting falling back to local in-memory due to init error: %s", e)
        else:
            app.state.rate_limit_enabled = False
            logger.warning("Rate limiting disabled due to init error: %s", e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    redis_client = build_redis()
    await init_rate_limiter(app, redis_client)

    http = httpx.AsyncClient(base_url=COMMERCE_API_URL, timeout=COLLABORATOR_TIMEOUT)
    storage = RedisCartStorage(redis_client)
    app.state.redis = redis_client
    app.state.http = http
    app.state.cart_storage = storage
    app.state.stock_validator = StockValidator(policy=STOCK_LOOKUP_POLICY)
    app.state.orders_client = OrdersClient(http)
    app.state.payments_client = PaymentsClient(http)
    app.state.sessions = ShopperSessions(
        storage=storage,
        validator=app.state.stock_validator,
        orders=app.state.orders_client,
        payments=app.state.payments_client,
        pricing=PricingRules(),
        quantity_ceiling=CART_QUANTITY_CEILING,
        merge_policy=CART_MERGE_POLICY,
    )
    logger.info(
        "Storefront ready (commerce_api=%s merge_policy=%s stock_policy=%s)",
        COMMERCE_API_URL, CART_MERGE_POLICY, STOCK_LOOKUP_POLICY,
    )
    try:
        yield
    finally:
        await http.aclose()
        await redis_client.aclose()
