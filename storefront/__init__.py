"""
Boutique (bijoux): moteur de panier et remise checkout -> commande -> paiement.
Application FastAPI: voir storefront.app_setup.factory.create_app.
"""

__version__ = "0.1.0"
