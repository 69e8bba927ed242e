"""
Emplacement durable du panier (Redis).

- Une clé par panier: "<prefix>:<cart_id>" (préfixe CART_STORAGE_KEY, "fj-cart" par défaut)
- Valeur: tableau JSON de lignes en camelCase, décimaux en chaînes, champs optionnels absents omis
- Un panier vide n'occupe pas d'emplacement: la clé est supprimée
"""
from typing import List
import logging

from pydantic import TypeAdapter
from redis.exceptions import RedisError

from storefront.config import CART_STORAGE_KEY
from storefront.errors import PersistenceWriteFailed
from .models import CartLine

logger = logging.getLogger(__name__)

_LINES = TypeAdapter(List[CartLine])


def dumps_lines(lines: List[CartLine]) -> str:
    return _LINES.dump_json(lines, by_alias=True, exclude_none=True).decode("utf-8")


def loads_lines(raw: str) -> List[CartLine]:
    """Lève pydantic.ValidationError si la valeur stockée n'est pas un panier lisible."""
    return _LINES.validate_json(raw)


class RedisCartStorage:
    """
    Adaptateur clé/valeur pour les paniers.
    - redis: client asynchrone (redis.asyncio ou fakeredis.aioredis) en decode_responses=True
    """

    def __init__(self, redis, key_prefix: str = CART_STORAGE_KEY):
        self.redis = redis
        self.key_prefix = key_prefix

    def key_for(self, cart_id: str) -> str:
        return f"{self.key_prefix}:{cart_id}"

    async def load(self, cart_id: str) -> List[CartLine]:
        raw = await self.redis.get(self.key_for(cart_id))
        if not raw:
            return []
        return loads_lines(raw)

    async def save(self, cart_id: str, lines: List[CartLine]) -> None:
        try:
            await self.redis.set(self.key_for(cart_id), dumps_lines(lines))
        except RedisError as e:
            raise PersistenceWriteFailed(f"cart save failed for {cart_id}: {e}") from e

    async def erase(self, cart_id: str) -> None:
        try:
            await self.redis.delete(self.key_for(cart_id))
        except RedisError as e:
            raise PersistenceWriteFailed(f"cart erase failed for {cart_id}: {e}") from e

    async def ping(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except RedisError:
            logger.exception("cart.storage ping failed")
            return False
