"""
Registre central des routers.
- API v1: panier, checkout
- Health: health_router
"""
from fastapi import FastAPI
from storefront.cart import views as cart_views
from storefront.checkout import views as checkout_views
from storefront.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # API v1
    app.include_router(cart_views.router)
    app.include_router(checkout_views.router)
    # Health & monitoring
    app.include_router(health_router)
