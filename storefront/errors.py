"""
Taxonomie des erreurs du panier et du checkout.

- Erreurs « commerce » (remontées à l'UI): StockUnavailable, ValidationError,
  CheckoutStepError, OrderPlacementInProgress, OrderCreationFailed, PaymentInitFailed.
- Erreurs « infrastructure » (absorbées et loggées localement): PersistenceWriteFailed,
  StockLookupError.
Chaque erreur porte un `code` stable utilisé par les gestionnaires HTTP.
"""
from typing import List, Optional


class CommerceError(Exception):
    code = "commerce_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StockUnavailable(CommerceError):
    code = "stock_unavailable"


class QuantityLimitExceeded(StockUnavailable):
    code = "quantity_limit_exceeded"


class ValidationError(CommerceError):
    code = "validation_error"

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        super().__init__(message)
        self.fields = list(fields or [])


class CheckoutStepError(CommerceError):
    code = "invalid_step"


class OrderPlacementInProgress(CommerceError):
    code = "order_in_progress"


class OrderCreationFailed(CommerceError):
    code = "order_creation_failed"


class PaymentInitFailed(CommerceError):
    code = "payment_init_failed"

    def __init__(self, message: str, order_id: Optional[str] = None):
        super().__init__(message)
        self.order_id = order_id


class PersistenceWriteFailed(Exception):
    """Écriture de l'emplacement durable du panier impossible (loggée uniquement)."""


class StockLookupError(Exception):
    """Lecture du stock impossible (réseau, produit introuvable)."""
