"""
Module 'cart' (feature-first): point d'entrée public.
Réunit le modèle de ligne, l'emplacement Redis et le moteur du panier.
"""

from .models import CartLine, CartSnapshot, CartValidation, LineCandidate, line_key
from .storage import RedisCartStorage, dumps_lines, loads_lines
from .store import CartStore, MergePolicy

__all__ = [
    # models
    "CartLine",
    "CartSnapshot",
    "CartValidation",
    "LineCandidate",
    "line_key",
    # storage
    "RedisCartStorage",
    "dumps_lines",
    "loads_lines",
    # store
    "CartStore",
    "MergePolicy",
]
