"""
Moteur du panier: état en mémoire, mutations validées par le stock, persistance.

Règles:
- add_line / set_quantity attendent la validation de stock AVANT de muter (jamais de mutation optimiste)
- remove_line mute immédiatement, sans validation
- chaque mutation est persistée; un panier vide efface son emplacement
- les mutations d'une même ligne sont sérialisées (verrou par ligne): pas de mise à jour perdue
- les écritures de persistance sont sérialisées et écrivent toujours l'état le plus récent
"""
from enum import Enum
from typing import Dict, List, Optional
import asyncio
import logging

from storefront.config import CART_QUANTITY_CEILING
from storefront.errors import (
    PersistenceWriteFailed,
    QuantityLimitExceeded,
    StockUnavailable,
    ValidationError,
)
from .models import CartLine, CartSnapshot, CartValidation, LineCandidate, line_key

logger = logging.getLogger(__name__)


class MergePolicy(str, Enum):
    CLAMP = "clamp"
    FAIL = "fail"


class CartStore:
    def __init__(
        self,
        cart_id: str,
        storage,
        validator,
        quantity_ceiling: int = CART_QUANTITY_CEILING,
        merge_policy: MergePolicy = MergePolicy.CLAMP,
    ):
        self.cart_id = cart_id
        self.storage = storage
        self.validator = validator
        self.quantity_ceiling = quantity_ceiling
        self.merge_policy = MergePolicy(merge_policy)
        self._lines: Dict[str, CartLine] = {}
        self._is_open = False
        self._pending_checks = 0
        self._hydrated = False
        self._hydrate_lock = asyncio.Lock()
        self._persist_lock = asyncio.Lock()
        self._line_locks: Dict[str, asyncio.Lock] = {}

    # --- Lecture ---

    @property
    def is_loading(self) -> bool:
        return self._pending_checks > 0

    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def get_line(self, line_id: str) -> Optional[CartLine]:
        return self._lines.get(line_id)

    def snapshot(self) -> CartSnapshot:
        return CartSnapshot.from_lines(self.lines(), is_open=self._is_open, is_loading=self.is_loading)

    # --- Visibilité (tiroir panier) ---

    def open(self) -> None:
        self._is_open = True

    def close(self) -> None:
        self._is_open = False

    def toggle(self) -> bool:
        self._is_open = not self._is_open
        return self._is_open

    # --- Internes ---

    def _lock_for(self, line_id: str) -> asyncio.Lock:
        lock = self._line_locks.get(line_id)
        if lock is None:
            lock = asyncio.Lock()
            self._line_locks[line_id] = lock
        return lock

    def _limit_for(self, max_quantity: Optional[int]) -> int:
        return max_quantity or self.quantity_ceiling

    async def _check_stock(self, product_id: str, variant_id: Optional[str], quantity: int) -> bool:
        self._pending_checks += 1
        try:
            return await self.validator.check(product_id, variant_id, quantity)
        finally:
            self._pending_checks -= 1

    async def _persist(self) -> None:
        async with self._persist_lock:
            # l'état lu ici est celui au moment de l'écriture, pas celui du déclenchement
            lines = self.lines()
            try:
                if lines:
                    await self.storage.save(self.cart_id, lines)
                else:
                    await self.storage.erase(self.cart_id)
            except PersistenceWriteFailed:
                logger.exception("cart.persist failed cart_id=%s lines=%s", self.cart_id, len(lines))

    # --- Cycle de vie ---

    async def hydrate(self) -> None:
        """Charge les lignes persistées une seule fois; une donnée illisible est ignorée."""
        async with self._hydrate_lock:
            if self._hydrated:
                return
            self._hydrated = True
            try:
                stored = await self.storage.load(self.cart_id)
            except Exception:
                logger.exception("cart.hydrate unreadable slot cart_id=%s", self.cart_id)
                return
            for line in stored:
                if line.id not in self._lines:
                    self._lines[line.id] = line

    # --- Mutations ---

    async def add_line(self, candidate: LineCandidate, quantity: int = 1) -> CartLine:
        """
        Ajoute un article (ou fusionne avec la ligne existante du même produit/variante).
        - Stock validé pour la quantité cumulée (existante + ajoutée)
          - recalculée sur l'état courant après la validation (ligne retirée ou panier vidé entre-temps)
          - revalidée si elle dépasse la quantité déjà validée
        - Plafond: max_quantity de la ligne, sinon le plafond souple du panier
          - politique "clamp": l'excédent est ignoré
          - politique "fail": QuantityLimitExceeded, état inchangé
        - Stock refusé: StockUnavailable, état inchangé
        """
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1", fields=["quantity"])
        key = line_key(candidate.product_id, candidate.variant_id)
        async with self._lock_for(key):
            checked = 0
            while True:
                # la quantité cumulée se calcule sur l'état courant, relu après chaque attente
                existing = self._lines.get(key)
                requested = (existing.quantity if existing else 0) + quantity
                limit = self._limit_for(existing.max_quantity if existing else candidate.max_quantity)
                if requested > limit and self.merge_policy is MergePolicy.FAIL:
                    raise QuantityLimitExceeded(f"{candidate.name} is limited to {limit} per order")
                if requested <= checked:
                    break
                available = await self._check_stock(candidate.product_id, candidate.variant_id, requested)
                if not available:
                    raise StockUnavailable(f"{candidate.name} is not available in the requested quantity")
                checked = requested

            final_quantity = min(requested, limit)
            if existing is not None:
                line = existing.model_copy(update={"quantity": final_quantity})
            else:
                line = CartLine(id=key, quantity=final_quantity, **candidate.model_dump())
            self._lines[key] = line
            await self._persist()
        logger.debug("cart.add_line cart_id=%s line=%s quantity=%s", self.cart_id, key, line.quantity)
        return line

    async def remove_line(self, line_id: str) -> None:
        """Retrait inconditionnel et idempotent (pas de contrôle de stock)."""
        if self._lines.pop(line_id, None) is None:
            return
        await self._persist()

    async def set_quantity(self, line_id: str, quantity: int) -> Optional[CartLine]:
        """
        Fixe la quantité absolue d'une ligne.
        - quantity <= 0: équivaut à remove_line
        - ligne inconnue: aucun effet
        - stock revalidé pour la quantité demandée, puis bornage à [1, plafond]
        """
        if quantity <= 0:
            await self.remove_line(line_id)
            return None
        async with self._lock_for(line_id):
            line = self._lines.get(line_id)
            if line is None:
                return None
            available = await self._check_stock(line.product_id, line.variant_id, quantity)
            if not available:
                raise StockUnavailable(f"{line.name} is not available in the requested quantity")
            current = self._lines.get(line_id)
            if current is None:
                # retirée pendant la validation
                return None
            bounded = max(1, min(quantity, self._limit_for(current.max_quantity)))
            updated = current.model_copy(update={"quantity": bounded})
            self._lines[line_id] = updated
            await self._persist()
        return updated

    async def clear(self) -> None:
        self._lines.clear()
        await self._persist()

    async def validate_all(self) -> CartValidation:
        """Revalide chaque ligne avec sa quantité courante; ne modifie jamais le panier."""
        errors: List[str] = []
        for line in self.lines():
            if not await self._check_stock(line.product_id, line.variant_id, line.quantity):
                errors.append(f"{line.name} is no longer available in the requested quantity")
        return CartValidation(valid=not errors, errors=errors)
