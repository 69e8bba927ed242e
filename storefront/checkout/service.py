"""
Orchestrateur du checkout: Récapitulatif -> Livraison -> Paiement -> Confirmation.

Transitions:
- enter_review: (re)démarre au récapitulatif et revalide le stock du panier
- proceed_to_shipping: récapitulatif sans erreur et panier non vide
- submit_shipping: champs obligatoires valides, sauvegarde profil optionnelle (avertissement si échec)
- back: Livraison -> Récapitulatif, Paiement -> Livraison (sans validation)
- apply_return_params: retour du processeur (cancelled/failed + order) -> Paiement, panier intact
- place_order: création de commande, initialisation du paiement, vidage du panier, remise
Un échec de placement laisse le client sur Paiement avec son panier.
"""
from typing import Any, Dict, Iterable, Optional
import logging

from starlette.concurrency import run_in_threadpool

from storefront.cart.models import CartLine
from storefront.cart.store import CartStore
from storefront.errors import (
    CheckoutStepError,
    OrderPlacementInProgress,
    ValidationError,
)
from storefront.payments.handoff import PaymentHandoff, build_handoff
from storefront.users import service as users_service
from .collaborators import OrdersClient, PaymentsClient, build_order_payload, build_payment_payload
from .models import CheckoutSession, CheckoutStep, DerivedTotals, PendingOrder, ShippingInfo
from .pricing import PricingRules, compute_totals

logger = logging.getLogger(__name__)

RETURN_MESSAGES = {
    "cancelled": "Payment was cancelled. You can try again below.",
    "failed": "Payment failed. Please try again or contact support.",
}
PROFILE_SAVE_WARNING = "Your shipping details could not be saved to your profile."


def cart_fingerprint(lines: Iterable[CartLine]) -> str:
    """Empreinte des lignes (id, quantité, prix) pour reconnaître un panier inchangé."""
    return "|".join(f"{line.id}:{line.quantity}:{line.unit_price}" for line in lines)


class CheckoutOrchestrator:
    def __init__(
        self,
        cart: CartStore,
        orders: OrdersClient,
        payments: PaymentsClient,
        pricing: Optional[PricingRules] = None,
    ):
        self.cart = cart
        self.orders = orders
        self.payments = payments
        self.pricing = pricing or PricingRules()
        self.session = CheckoutSession()
        self._placing = False

    @property
    def step(self) -> CheckoutStep:
        return self.session.step

    def _require_step(self, expected: CheckoutStep, action: str) -> None:
        if self.session.step != expected:
            raise CheckoutStepError(
                f"Cannot {action} from step {self.session.step.name.lower()}"
            )

    def totals(self) -> DerivedTotals:
        return compute_totals(self.cart.snapshot().total_price, self.pricing)

    def state(self) -> Dict[str, Any]:
        self.session.derived_totals = self.totals()
        return self.session.to_public()

    # --- Étape 1: récapitulatif ---

    async def enter_review(self) -> CheckoutSession:
        validation = await self.cart.validate_all()
        self.session.step = CheckoutStep.REVIEW
        self.session.cart_snapshot_errors = list(validation.errors)
        self.session.message = None
        self.session.warnings = []
        self.session.order = None
        self.session.returned_order_id = None
        return self.session

    async def proceed_to_shipping(self) -> CheckoutSession:
        self._require_step(CheckoutStep.REVIEW, "continue to shipping")
        if self.session.cart_snapshot_errors:
            raise ValidationError("Some items in your cart are unavailable", fields=["items"])
        if self.cart.snapshot().is_empty:
            raise ValidationError("Your cart is empty", fields=["items"])
        self.session.step = CheckoutStep.SHIPPING
        return self.session

    # --- Étape 2: livraison ---

    async def prefill_shipping(self, user: Optional[Dict[str, Any]]) -> ShippingInfo:
        """Complète les champs vides avec le profil enregistré (clients connectés uniquement)."""
        if not user:
            return self.session.shipping_info
        saved = await run_in_threadpool(users_service.load_shipping_profile, user)
        current = self.session.shipping_info.model_dump()
        defaults = ShippingInfo().model_dump()
        if user.get("email"):
            saved.setdefault("email", str(user["email"]))
        updates = {k: v for k, v in saved.items() if not current.get(k) or current[k] == defaults.get(k)}
        if updates:
            self.session.shipping_info = self.session.shipping_info.model_copy(update=updates)
        return self.session.shipping_info

    async def submit_shipping(
        self,
        info: ShippingInfo,
        save_to_profile: bool = False,
        user: Optional[Dict[str, Any]] = None,
    ) -> CheckoutSession:
        self._require_step(CheckoutStep.SHIPPING, "submit shipping")
        invalid = info.invalid_fields()
        if invalid:
            raise ValidationError(f"Please fill in: {', '.join(invalid)}", fields=invalid)
        self.session.shipping_info = info
        if save_to_profile and user:
            saved = False
            try:
                saved = await run_in_threadpool(users_service.save_shipping_profile, user, info)
            except Exception:
                logger.exception("checkout.submit_shipping profile save failed user_id=%s", user.get("id"))
            if not saved:
                self.session.warnings.append(PROFILE_SAVE_WARNING)
        self.session.step = CheckoutStep.PAYMENT
        return self.session

    def back(self) -> CheckoutSession:
        if self.session.step == CheckoutStep.SHIPPING:
            self.session.step = CheckoutStep.REVIEW
        elif self.session.step == CheckoutStep.PAYMENT:
            self.session.step = CheckoutStep.SHIPPING
        else:
            raise CheckoutStepError(f"Cannot go back from step {self.session.step.name.lower()}")
        return self.session

    def apply_return_params(self, payment: Optional[str], order: Optional[str]) -> CheckoutSession:
        """Retour du processeur: seul cancelled|failed accompagné d'un order est pris en compte."""
        message = RETURN_MESSAGES.get((payment or "").strip().lower())
        if not message or not (order or "").strip():
            return self.session
        self.session.step = CheckoutStep.PAYMENT
        self.session.message = message
        self.session.returned_order_id = order.strip()
        return self.session

    # --- Étape 3: paiement ---

    async def place_order(self) -> PaymentHandoff:
        self._require_step(CheckoutStep.PAYMENT, "place order")
        if self._placing:
            raise OrderPlacementInProgress("Your order is already being placed")
        self._placing = True
        try:
            return await self._place_order()
        finally:
            self._placing = False

    async def _place_order(self) -> PaymentHandoff:
        snapshot = self.cart.snapshot()
        if snapshot.is_empty:
            raise ValidationError("Your cart is empty", fields=["items"])
        shipping = self.session.shipping_info
        # le retour du processeur peut mener ici sans passage par la livraison
        invalid = shipping.invalid_fields()
        if invalid:
            raise ValidationError(f"Please fill in: {', '.join(invalid)}", fields=invalid)
        totals = self.totals()
        self.session.derived_totals = totals
        fingerprint = cart_fingerprint(snapshot.lines)

        pending = self.session.pending_order
        if pending is not None and not pending.matches(fingerprint, totals.grand_total):
            # le panier a changé depuis: la commande en attente ne correspond plus
            logger.info("checkout.place_order dropping pending order_id=%s", pending.order.id)
            pending = None
            self.session.pending_order = None

        if pending is None:
            payload = build_order_payload(list(snapshot.lines), shipping, totals, snapshot.total_savings)
            order = await self.orders.create_order(payload)
            pending = PendingOrder(order=order, amount=totals.grand_total, lines_fingerprint=fingerprint)
            self.session.pending_order = pending
            logger.info("checkout.place_order order created order_id=%s number=%s", order.id, order.order_number)
        else:
            logger.info("checkout.place_order retrying payment order_id=%s", pending.order.id)

        order = pending.order
        init = await self.payments.initialize_payment(
            build_payment_payload(order, totals.grand_total, shipping),
            order_id=order.id,
        )

        self.session.pending_order = None
        await self.cart.clear()
        handoff = build_handoff(init.payment_url, init.payment_data)
        self.session.order = order
        self.session.message = None
        self.session.step = CheckoutStep.CONFIRMATION
        logger.info("checkout.place_order handoff order_id=%s fields=%s", order.id, len(handoff.fields))
        return handoff
