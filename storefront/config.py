# storefront.config
from decimal import Decimal
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

"""
Configuration centrale de la boutique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Redis, API commerce)
- Expose les règles de prix du checkout (livraison offerte, forfait, TVA)
- Expose les politiques du panier (fusion, plafond, stock en échec)
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _decimal_env(name: str, default: str) -> Decimal:
    return Decimal(_clean_env(os.getenv(name) or default))

# Supabase: URL et clés (anon/service)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Cookies / session navigateur (porte l'identifiant du panier)
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY", "replace_me_with_a_long_random_secret")
# Registre des sessions acheteur en mémoire: éviction après inactivité (secondes) et taille maximale
SESSION_IDLE_TTL = float(os.getenv("SESSION_IDLE_TTL", "1800"))
SESSION_MAX_ENTRIES = int(os.getenv("SESSION_MAX_ENTRIES", "10000"))

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

# Panier: emplacement durable (Redis) et politiques
CART_REDIS_URL = _clean_env(os.getenv("CART_REDIS_URL") or os.getenv("RATE_LIMIT_REDIS_URL") or "redis://127.0.0.1:6379/0")
CART_STORAGE_KEY = _clean_env(os.getenv("CART_STORAGE_KEY") or "fj-cart")
CART_QUANTITY_CEILING = int(os.getenv("CART_QUANTITY_CEILING", "99"))
# "clamp" (excédent ignoré) ou "fail" (erreur si plafond dépassé)
CART_MERGE_POLICY = _clean_env(os.getenv("CART_MERGE_POLICY") or "clamp").lower()
# "fail_open" (disponible si lecture du stock impossible) ou "fail_closed"
STOCK_LOOKUP_POLICY = _clean_env(os.getenv("STOCK_LOOKUP_POLICY") or "fail_open").lower()

# Règles de prix du checkout (injectables, pas des secrets)
FREE_SHIPPING_THRESHOLD = _decimal_env("FREE_SHIPPING_THRESHOLD", "75")
FLAT_SHIPPING_FEE = _decimal_env("FLAT_SHIPPING_FEE", "10")
TAX_RATE = _decimal_env("TAX_RATE", "0.085")

# Collaborateurs externes: création de commande et initialisation du paiement
COMMERCE_API_URL = _clean_env(os.getenv("COMMERCE_API_URL") or "http://localhost:3000").rstrip("/")
ORDERS_CREATE_PATH = os.getenv("ORDERS_CREATE_PATH", "/api/orders/create")
PAYMENTS_INIT_PATH = os.getenv("PAYMENTS_INIT_PATH", "/api/payments/payfast/initialize")
COLLABORATOR_TIMEOUT = float(os.getenv("COLLABORATOR_TIMEOUT", "10"))
