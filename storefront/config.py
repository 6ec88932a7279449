# storefront.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

"""
Configuration centrale du backend.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe, Clerk)
- Expose les paramètres de tarification du checkout (livraison, taxe, devise)
- Sécurité: CORS/hosts, HSTS, chemins servis en production
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _split_env(name: str, default: str = "") -> list:
    return [p.strip() for p in _clean_env(os.getenv(name, default)).split(",") if p.strip()]

APP_ENV = _clean_env(os.getenv("APP_ENV") or os.getenv("NODE_ENV") or "development").lower()

# Supabase: URL et clés (anon/service)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Stripe: clés et secret webhook
STRIPE_PUBLISHABLE_KEY = _clean_env(os.getenv("STRIPE_PUBLISHABLE_KEY") or "")
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")
STRIPE_TIMEOUT_SECONDS = float(_clean_env(os.getenv("STRIPE_TIMEOUT_SECONDS") or "20"))

# Clerk: vérification des jetons de session (JWKS RS256)
CLERK_JWKS_URL = _clean_env(os.getenv("CLERK_JWKS_URL") or "")
CLERK_ISSUER = _clean_env(os.getenv("CLERK_ISSUER") or "")
CLERK_AUTHORIZED_PARTIES = _split_env("CLERK_AUTHORIZED_PARTIES")

ADMIN_EMAILS = [e.lower() for e in _split_env("ADMIN_EMAILS")]

# Tarification du checkout (prix serveur uniquement)
CURRENCY = _clean_env(os.getenv("CURRENCY") or "usd").lower()
SHIPPING_FLAT_FEE = _clean_env(os.getenv("SHIPPING_FLAT_FEE") or "10.00")
TAX_RATE = _clean_env(os.getenv("TAX_RATE") or "0.08")

# CORS / hôtes
CLIENT_URL = _clean_env(os.getenv("CLIENT_URL") or "http://localhost:5173")
CORS_ORIGINS = _split_env("CORS_ORIGINS") or [CLIENT_URL]
ALLOWED_HOSTS = _split_env("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver")
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")

# Dashboard admin (SPA buildée) servi en production
ADMIN_DIST_DIR = Path(_clean_env(os.getenv("ADMIN_DIST_DIR") or str(BASE_DIR.parent / "admin" / "dist")))
