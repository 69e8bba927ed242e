"""
Registre des sessions acheteur: un panier + un checkout par identifiant de session.

L'identifiant est porté par le cookie de session signé (SessionMiddleware, clé "cart_id").
Le panier est hydraté depuis Redis à la première utilisation de la session dans ce processus.

Éviction: les sessions inactives depuis plus de idle_ttl secondes sont retirées (ordre LRU),
et le registre ne dépasse jamais max_sessions. Un panier évincé revient de Redis au prochain
accès; l'état du checkout (étape, livraison saisie) repart du récapitulatif.
"""
from collections import OrderedDict
from typing import Callable, Optional
import asyncio
import logging
import time
import uuid

from fastapi import Request

from storefront.cart.store import CartStore, MergePolicy
from storefront.checkout.pricing import PricingRules
from storefront.checkout.service import CheckoutOrchestrator
from storefront.config import SESSION_IDLE_TTL, SESSION_MAX_ENTRIES

logger = logging.getLogger(__name__)

SESSION_CART_KEY = "cart_id"


def new_cart_id() -> str:
    return uuid.uuid4().hex


class ShopperSession:
    def __init__(self, cart: CartStore, checkout: CheckoutOrchestrator):
        self.cart = cart
        self.checkout = checkout
        self.last_seen = 0.0

    @property
    def cart_id(self) -> str:
        return self.cart.cart_id


class ShopperSessions:
    def __init__(
        self,
        storage,
        validator,
        orders,
        payments,
        pricing: Optional[PricingRules] = None,
        quantity_ceiling: Optional[int] = None,
        merge_policy: MergePolicy = MergePolicy.CLAMP,
        idle_ttl: float = SESSION_IDLE_TTL,
        max_sessions: int = SESSION_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.storage = storage
        self.validator = validator
        self.orders = orders
        self.payments = payments
        self.pricing = pricing or PricingRules()
        self.quantity_ceiling = quantity_ceiling
        self.merge_policy = MergePolicy(merge_policy)
        self.idle_ttl = idle_ttl
        self.max_sessions = max_sessions
        self._clock = clock
        # du moins récemment utilisé au plus récent
        self._sessions: "OrderedDict[str, ShopperSession]" = OrderedDict()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, cart_id: str) -> bool:
        return cart_id in self._sessions

    def _build(self, cart_id: str) -> ShopperSession:
        kwargs = {"merge_policy": self.merge_policy}
        if self.quantity_ceiling:
            kwargs["quantity_ceiling"] = self.quantity_ceiling
        cart = CartStore(cart_id, self.storage, self.validator, **kwargs)
        checkout = CheckoutOrchestrator(cart, self.orders, self.payments, self.pricing)
        return ShopperSession(cart, checkout)

    def _evict(self, now: float) -> None:
        while self._sessions:
            cart_id, oldest = next(iter(self._sessions.items()))
            idle = now - oldest.last_seen
            if idle <= self.idle_ttl and len(self._sessions) <= self.max_sessions:
                return
            self._sessions.popitem(last=False)
            logger.debug("sessions.evict cart_id=%s idle=%.0fs", cart_id, idle)

    async def get(self, cart_id: str) -> ShopperSession:
        async with self._lock:
            now = self._clock()
            shopper = self._sessions.get(cart_id)
            if shopper is None:
                shopper = self._build(cart_id)
                self._sessions[cart_id] = shopper
                logger.debug("sessions.create cart_id=%s", cart_id)
            else:
                self._sessions.move_to_end(cart_id)
            shopper.last_seen = now
            self._evict(now)
        await shopper.cart.hydrate()
        return shopper


async def get_shopper(request: Request) -> ShopperSession:
    """Dépendance FastAPI: session acheteur de la requête (identifiant créé au besoin)."""
    cart_id = request.session.get(SESSION_CART_KEY)
    if not cart_id:
        cart_id = new_cart_id()
        request.session[SESSION_CART_KEY] = cart_id
    return await request.app.state.sessions.get(cart_id)
