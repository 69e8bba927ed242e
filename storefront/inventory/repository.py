"""
Accès aux données de stock (table 'products').
"""
from typing import Any, Dict, Optional
import logging
import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

STOCK_COLUMNS = "stock_quantity, track_quantity, allow_backorder"

# module storefront.inventory.repository
def fetch_product_stock(product_id: str) -> Optional[Dict[str, Any]]:
    """
    Lit {stock_quantity, track_quantity, allow_backorder} pour un produit.
    - Retourne None si le produit est introuvable ou en cas d'erreur (loggée).
    - La décision (disponible ou non) appartient au StockValidator.
    """
    if not product_id:
        return None
    try:
        return supabase_client.fetch_single_row(
            supabase_client.get_supabase(), "products", STOCK_COLUMNS, str(product_id)
        )
    except Exception:
        logger.exception("inventory.repository.fetch_product_stock failed product_id=%s", product_id)
        return None
