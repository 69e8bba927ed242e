import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from storefront.sessions import ShopperSession, get_shopper
from storefront.utils.rate_limit import optional_rate_limit
from .models import LineCandidate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/cart", tags=["Cart API"])


class AddLineRequest(LineCandidate):
    quantity: int = 1


class QuantityRequest(BaseModel):
    quantity: int


class VisibilityRequest(BaseModel):
    open: Optional[bool] = Field(default=None)


def _cart_payload(shopper: ShopperSession) -> Dict[str, Any]:
    return shopper.cart.snapshot().to_public()


# module storefront.cart.views
@router.get("")
async def get_cart(shopper: ShopperSession = Depends(get_shopper)):
    """État du panier: lignes + totaux dérivés (totalItems, totalPrice, totalSavings)."""
    return _cart_payload(shopper)


@router.post("/items", dependencies=[Depends(optional_rate_limit(times=60, seconds=60))])
async def add_item(body: AddLineRequest, shopper: ShopperSession = Depends(get_shopper)):
    """
    Ajoute un article au panier.
    - Entrée JSON: champs LineCandidate (camelCase) + "quantity" (défaut 1)
    - Fusion avec la ligne existante du même produit/variante
    - 409 si stock insuffisant (ou plafond dépassé en politique "fail")
    """
    candidate = LineCandidate.model_validate(body.model_dump(exclude={"quantity"}))
    line = await shopper.cart.add_line(candidate, body.quantity)
    return {"line": line.model_dump(mode="json", by_alias=True, exclude_none=True), "cart": _cart_payload(shopper)}


@router.patch("/items/{line_id}")
async def update_item(line_id: str, body: QuantityRequest, shopper: ShopperSession = Depends(get_shopper)):
    """Quantité absolue; <= 0 retire la ligne, ligne inconnue ignorée."""
    await shopper.cart.set_quantity(line_id, body.quantity)
    return _cart_payload(shopper)


@router.delete("/items/{line_id}")
async def remove_item(line_id: str, shopper: ShopperSession = Depends(get_shopper)):
    await shopper.cart.remove_line(line_id)
    return _cart_payload(shopper)


@router.delete("")
async def clear_cart(shopper: ShopperSession = Depends(get_shopper)):
    await shopper.cart.clear()
    return _cart_payload(shopper)


@router.get("/validate")
async def validate_cart(shopper: ShopperSession = Depends(get_shopper)):
    """Revalide le stock de toutes les lignes sans modifier le panier: {valid, errors}."""
    result = await shopper.cart.validate_all()
    return result.model_dump(mode="json", by_alias=True)


@router.post("/toggle")
async def toggle_cart(body: Optional[VisibilityRequest] = None, shopper: ShopperSession = Depends(get_shopper)):
    """Tiroir panier: {"open": true|false} force l'état, sans corps on bascule."""
    requested = body.open if body is not None else None
    if requested is True:
        shopper.cart.open()
    elif requested is False:
        shopper.cart.close()
    else:
        shopper.cart.toggle()
    return _cart_payload(shopper)
