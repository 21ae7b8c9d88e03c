# storefront.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

TEMPLATES_DIR = Path(__file__).resolve().parent / "notifications" / "templates"

"""
Configuration centrale de la boutique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets Stripe, l'origine publique du site et les réglages checkout
- Expose les identifiants du service d'emails (EmailJS) et la boîte opérateur
- Réglages du registre d'événements webhook (dédoublonnage) et du rate limiting
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _int_env(name: str, default: int) -> int:
    try:
        return int(_clean_env(os.getenv(name) or "") or default)
    except ValueError:
        return default

def _list_env(name: str, default: str) -> list[str]:
    return [v.strip() for v in (os.getenv(name) or default).split(",") if v.strip()]

# Stripe: clés publiques/privées et secret webhook
STRIPE_PUBLIC_KEY = _clean_env(os.getenv("STRIPE_PUBLIC_KEY") or "")
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")
# Borne sur chaque appel réseau vers Stripe
STRIPE_TIMEOUT_SECONDS = _int_env("STRIPE_TIMEOUT_SECONDS", 15)

# Origine publique du site (fallback si l'en-tête Origin est absent)
SITE_ORIGIN = _clean_env(os.getenv("SITE_ORIGIN") or "http://localhost:8000").rstrip("/")

# Checkout: devise unique, livraison offerte 3-5 jours ouvrés, pays autorisés
CHECKOUT_CURRENCY = _clean_env(os.getenv("CHECKOUT_CURRENCY") or "usd").lower()
SHIPPING_ALLOWED_COUNTRIES = [c.upper() for c in _list_env("SHIPPING_ALLOWED_COUNTRIES", "US,CA")]
SHIPPING_MIN_DAYS = _int_env("SHIPPING_MIN_DAYS", 3)
SHIPPING_MAX_DAYS = _int_env("SHIPPING_MAX_DAYS", 5)
CHECKOUT_SUCCESS_PATH = os.getenv("CHECKOUT_SUCCESS_PATH", "/success")
CHECKOUT_CANCEL_PATH = os.getenv("CHECKOUT_CANCEL_PATH", "/checkout")
METADATA_SOURCE = _clean_env(os.getenv("METADATA_SOURCE") or "durvalis_website")
DEFAULT_ITEM_DESCRIPTION = os.getenv(
    "DEFAULT_ITEM_DESCRIPTION",
    "Professional-grade apple-flavored dewormer for complete equine parasite control",
)

# Emails de confirmation (EmailJS REST) et boîte opérateur
EMAILJS_SERVICE_ID = _clean_env(os.getenv("EMAILJS_SERVICE_ID") or "")
EMAILJS_ORDER_TEMPLATE_ID = _clean_env(os.getenv("EMAILJS_ORDER_TEMPLATE_ID") or "")
EMAILJS_PUBLIC_KEY = _clean_env(os.getenv("EMAILJS_PUBLIC_KEY") or "")
EMAILJS_PRIVATE_KEY = _clean_env(os.getenv("EMAILJS_PRIVATE_KEY") or "")
EMAIL_TIMEOUT_SECONDS = _int_env("EMAIL_TIMEOUT_SECONDS", 10)
OPERATOR_EMAIL = _clean_env(os.getenv("OPERATOR_EMAIL") or "info@durvalis.com")
STORE_NAME = os.getenv("STORE_NAME", "Durvalis")
SUPPORT_EMAIL = _clean_env(os.getenv("SUPPORT_EMAIL") or "contact@durvalis.com")
SUPPORT_PHONE = os.getenv("SUPPORT_PHONE", "737-999-0318")
STORE_ADDRESS = os.getenv("STORE_ADDRESS", "5900 Balcones Dr #22995, Austin, TX 78731")

# Registre des événements webhook déjà traités (idempotence)
WEBHOOK_LEDGER_REDIS_URL = _clean_env(os.getenv("WEBHOOK_LEDGER_REDIS_URL") or "")
WEBHOOK_LEDGER_SIZE = _int_env("WEBHOOK_LEDGER_SIZE", 1024)
WEBHOOK_LEDGER_TTL_SECONDS = _int_env("WEBHOOK_LEDGER_TTL_SECONDS", 7 * 24 * 3600)

# Panier: clé de l'entrée de stockage local
CART_STORAGE_KEY = _clean_env(os.getenv("CART_STORAGE_KEY") or "durvalis-cart")

# Cookies/HSTS et CORS
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
CORS_ORIGINS = _list_env("CORS_ORIGINS", "*")
ALLOWED_HOSTS = _list_env("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver")
# Proxies autorisés à fixer X-Forwarded-For/Proto (IP client = clé du rate limiting)
FORWARDED_ALLOW_IPS = _list_env("FORWARDED_ALLOW_IPS", "127.0.0.1")
