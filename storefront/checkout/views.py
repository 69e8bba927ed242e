import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from storefront.payments.handoff import render_handoff_form
from storefront.sessions import ShopperSession, get_shopper
from storefront.utils.rate_limit import optional_rate_limit
from storefront.utils.security import get_optional_user
from .models import ShippingSubmission

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/checkout", tags=["Checkout API"])


def _wants_json(request: Request) -> bool:
    accept = (request.headers.get("accept") or "").lower()
    return "application/json" in accept and "text/html" not in accept


# module storefront.checkout.views
@router.get("")
async def checkout_page_state(
    payment: Optional[str] = None,
    order: Optional[str] = None,
    shopper: ShopperSession = Depends(get_shopper),
    user: Optional[Dict[str, Any]] = Depends(get_optional_user),
):
    """
    Entrée dans le checkout (équivalent du chargement de la page).
    - Revalide le stock du panier (étape 1, erreurs dans cartSnapshotErrors)
    - ?payment=cancelled|failed&order=<id>: retour du processeur, bascule sur l'étape Paiement
    - Client connecté: pré-remplit l'adresse depuis son profil
    """
    checkout = shopper.checkout
    await checkout.enter_review()
    checkout.apply_return_params(payment, order)
    if user:
        await checkout.prefill_shipping(user)
    return checkout.state()


@router.post("/shipping-step")
async def continue_to_shipping(shopper: ShopperSession = Depends(get_shopper)):
    await shopper.checkout.proceed_to_shipping()
    return shopper.checkout.state()


@router.post("/shipping")
async def submit_shipping(
    body: ShippingSubmission,
    shopper: ShopperSession = Depends(get_shopper),
    user: Optional[Dict[str, Any]] = Depends(get_optional_user),
):
    """
    Valide l'adresse de livraison puis passe à l'étape Paiement.
    - 422 avec la liste des champs manquants/invalides
    - saveToProfile: sauvegarde sur le profil (clients connectés), un échec n'ajoute qu'un avertissement
    """
    await shopper.checkout.submit_shipping(body.shipping_info, save_to_profile=body.save_to_profile, user=user)
    return shopper.checkout.state()


@router.post("/back")
async def go_back(shopper: ShopperSession = Depends(get_shopper)):
    shopper.checkout.back()
    return shopper.checkout.state()


@router.post("/place-order", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def place_order(request: Request, shopper: ShopperSession = Depends(get_shopper)):
    """
    Crée la commande, initialise le paiement, vide le panier et remet la main au processeur.
    - Navigateur: page HTML avec formulaire POST auto-soumis vers paymentUrl
    - Client API (Accept: application/json): {paymentUrl, paymentData, order}
    - Erreurs: 409 (étape, placement en cours), 422 (panier vide), 502 (collaborateurs)
    """
    handoff = await shopper.checkout.place_order()
    if _wants_json(request):
        order = shopper.checkout.session.order
        return JSONResponse({
            "paymentUrl": handoff.redirect_url,
            "paymentData": handoff.as_dict(),
            "order": order.model_dump(mode="json", by_alias=True) if order else None,
        })
    return render_handoff_form(request, handoff)
