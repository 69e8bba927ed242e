"""
Factory d’application pour les entrypoints (storefront.asgi, storefront.__main__).
Ordonne les étapes d’initialisation de manière lisible et testable.
"""
from fastapi import FastAPI
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_no_cache_middleware
from .exceptions import register_exception_handlers
from .routers import register_routers

def create_app() -> FastAPI:
    """
    Construit l’app FastAPI avec le lifespan et enregistre:
      1) register_basic_middlewares: session (panier), CORS, TrustedHost, proxy.
      2) register_no_cache_middleware: réponses panier/checkout jamais en cache.
      3) register_exception_handlers: erreurs commerce -> JSON {detail, code}.
      4) register_routers: panier, checkout, health.
    Les ressources (Redis, httpx, sessions acheteur) sont créées par le lifespan.
    """
    app = FastAPI(title="Storefront Cart & Checkout API", lifespan=lifespan)
    register_basic_middlewares(app)
    register_no_cache_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
