# module storefront.cart.models
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def line_key(product_id: str, variant_id: Optional[str] = None) -> str:
    """Identifiant de ligne: une ligne par couple (produit, variante)."""
    return f"{product_id}-{variant_id or 'default'}"


class _CamelModel(BaseModel):
    # Noms Python en snake_case, format d'échange (API, Redis, collaborateurs) en camelCase
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LineCandidate(_CamelModel):
    """
    Article proposé à l'ajout (fiche produit / quick-add).
    Le prix est figé au moment de l'ajout; les autres champs sont des données d'affichage.
    """
    product_id: str = Field(min_length=1)
    variant_id: Optional[str] = None
    name: str
    slug: str = ""
    sku: Optional[str] = None
    image: Optional[str] = None
    unit_price: Decimal = Field(ge=0)
    compare_at_price: Optional[Decimal] = None
    max_quantity: Optional[int] = Field(default=None, ge=1)
    variant_options: Optional[Dict[str, str]] = None


class CartLine(LineCandidate):
    id: str
    quantity: int = Field(ge=1)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def line_savings(self) -> Decimal:
        if self.compare_at_price is None or self.compare_at_price <= self.unit_price:
            return Decimal("0")
        return (self.compare_at_price - self.unit_price) * self.quantity


class CartSnapshot(_CamelModel):
    """Vue en lecture seule de l'état du panier; les totaux sont dérivés des lignes."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    lines: Tuple[CartLine, ...] = ()
    total_items: int = 0
    total_price: Decimal = Decimal("0")
    total_savings: Decimal = Decimal("0")
    is_open: bool = False
    is_loading: bool = False

    @classmethod
    def from_lines(cls, lines: List[CartLine], is_open: bool = False, is_loading: bool = False) -> "CartSnapshot":
        return cls(
            lines=tuple(lines),
            total_items=sum(line.quantity for line in lines),
            total_price=sum((line.line_total for line in lines), Decimal("0")),
            total_savings=sum((line.line_savings for line in lines), Decimal("0")),
            is_open=is_open,
            is_loading=is_loading,
        )

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def to_public(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CartValidation(_CamelModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
