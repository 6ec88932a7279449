"""
Authentification Clerk: vérifie le jeton de session (JWT RS256) et résout le profil local.
- La clé de signature est récupérée via le JWKS Clerk (PyJWKClient, mis en cache par le client).
- Le claim 'sub' (identifiant Clerk) relie le jeton à la ligne users.
"""
from typing import Any, Dict, Optional
import logging

import jwt
from jwt import PyJWKClient

from storefront import config
from storefront.users import repository as users_repo

logger = logging.getLogger(__name__)

_jwks_client: Optional[PyJWKClient] = None

class InvalidToken(Exception):
    pass

def get_jwks_client() -> PyJWKClient:
    global _jwks_client
    if _jwks_client is None:
        if not config.CLERK_JWKS_URL:
            raise InvalidToken("CLERK_JWKS_URL manquant")
        _jwks_client = PyJWKClient(config.CLERK_JWKS_URL)
    return _jwks_client

def verify_session_token(token: str) -> Dict[str, Any]:
    """
    Décode et valide un jeton de session Clerk.
    - Algorithme RS256, exp/nbf vérifiés (tolérance 5s)
    - iss vérifié si CLERK_ISSUER est défini
    - azp vérifié si CLERK_AUTHORIZED_PARTIES est défini
    Lève InvalidToken en cas d’échec.
    """
    try:
        signing_key = get_jwks_client().get_signing_key_from_jwt(token)
        options = {"require": ["exp", "sub"], "verify_aud": False}
        claims = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            issuer=config.CLERK_ISSUER or None,
            options=options,
            leeway=5,
        )
    except InvalidToken:
        raise
    except Exception as e:
        raise InvalidToken(str(e)) from e

    azp = claims.get("azp")
    if config.CLERK_AUTHORIZED_PARTIES and azp and azp not in config.CLERK_AUTHORIZED_PARTIES:
        raise InvalidToken(f"azp non autorisé: {azp}")
    return claims

def determine_role(profile: Dict[str, Any] | None) -> str:
    if str((profile or {}).get("role", "")).lower() == "admin":
        return "admin"
    email = str((profile or {}).get("email") or "").lower()
    if email and email in config.ADMIN_EMAILS:
        return "admin"
    return "user"

def get_user_from_token(access_token: str) -> Dict[str, Any]:
    """Normalise l’utilisateur courant:
    - Valide le jeton puis charge (ou crée) le profil users correspondant
    - Retourne {id, clerk_id, email, name, role, stripe_customer_id}
    """
    claims = verify_session_token(access_token)
    clerk_id = str(claims.get("sub") or "")
    profile = users_repo.get_user_by_clerk_id(clerk_id)
    if profile is None:
        # Premier appel authentifié: synchroniser un profil minimal
        profile = users_repo.upsert_user_profile(
            clerk_id,
            email=claims.get("email"),
            name=claims.get("name"),
            image_url=claims.get("image_url"),
        )
        logger.info("auth.service profil créé clerk_id=%s", clerk_id)

    return {
        "id": str(profile.get("id") or ""),
        "clerk_id": clerk_id,
        "email": profile.get("email"),
        "name": profile.get("name"),
        "role": determine_role(profile),
        "stripe_customer_id": profile.get("stripe_customer_id"),
    }
