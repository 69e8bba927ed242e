"""
Module 'payments' (feature-first): point d'entrée public.
Remise au processeur de paiement externe (formulaire auto-soumis).
"""

from .handoff import JsonNumber, PaymentHandoff, build_handoff, field_value, handoff_html, render_handoff_form

__all__ = [
    "JsonNumber",
    "PaymentHandoff",
    "build_handoff",
    "field_value",
    "handoff_html",
    "render_handoff_form",
]
