"""
Validation de stock pour le panier et le checkout.

Politique, évaluée dans l'ordre:
  1) produit sans suivi de quantité -> disponible
  2) produit autorisant le backorder -> disponible
  3) sinon disponible ssi stock_quantity >= quantité demandée
Lecture impossible (réseau, produit introuvable) -> StockLookupError, absorbée et loggée;
le résultat dépend alors de la politique nommée (fail_open par défaut).
"""
from enum import Enum
from typing import Any, Callable, Dict, Optional
import logging

from starlette.concurrency import run_in_threadpool

from storefront.errors import StockLookupError
from . import repository

logger = logging.getLogger(__name__)


class StockLookupPolicy(str, Enum):
    FAIL_OPEN = "fail_open"
    FAIL_CLOSED = "fail_closed"


def is_available(product: Dict[str, Any], requested_quantity: int) -> bool:
    if not product.get("track_quantity"):
        return True
    if product.get("allow_backorder"):
        return True
    try:
        stock = int(product.get("stock_quantity") or 0)
    except (TypeError, ValueError):
        stock = 0
    return stock >= requested_quantity


class StockValidator:
    """
    Collaborateur « inventaire » injecté dans le CartStore.
    - fetch_stock: fonction synchrone product_id -> dict|None (repository par défaut),
      exécutée dans le threadpool pour ne pas bloquer la boucle asyncio.
    """

    def __init__(
        self,
        policy: StockLookupPolicy = StockLookupPolicy.FAIL_OPEN,
        fetch_stock: Optional[Callable[[str], Optional[Dict[str, Any]]]] = None,
    ):
        self.policy = StockLookupPolicy(policy)
        self._fetch_stock = fetch_stock

    async def _lookup(self, product_id: str) -> Dict[str, Any]:
        fetch = self._fetch_stock or repository.fetch_product_stock
        try:
            product = await run_in_threadpool(fetch, product_id)
        except Exception as e:
            raise StockLookupError(f"stock lookup failed for {product_id}: {e}") from e
        if not product:
            raise StockLookupError(f"product not found: {product_id}")
        return product

    async def check(self, product_id: str, variant_id: Optional[str], requested_quantity: int) -> bool:
        # Le stock est suivi au niveau produit: variant_id n'entre pas dans la décision.
        try:
            product = await self._lookup(product_id)
        except StockLookupError:
            allowed = self.policy is StockLookupPolicy.FAIL_OPEN
            logger.exception(
                "inventory.check lookup error product_id=%s variant_id=%s policy=%s allowed=%s",
                product_id, variant_id, self.policy.value, allowed,
            )
            return allowed
        available = is_available(product, requested_quantity)
        logger.debug(
            "inventory.check product_id=%s requested=%s stock=%s available=%s",
            product_id, requested_quantity, product.get("stock_quantity"), available,
        )
        return available
