from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TypedDict
from urllib.parse import urlparse
import uuid

from jose import jwt, JWTError

# ==========================================================
# 🔧 Configuration : validation des session tokens Shopify
# ==========================================================

@dataclass(frozen=True)
class SessionTokenSettings:
    """
    Configuration des session tokens émis par l'admin Shopify (App Bridge).

    - `api_key` : clé de l'app, attendue dans le claim `aud`
    - `api_secret` : secret partagé, signe les tokens (HS256)
    - `leeway` : tolérance d'horloge en secondes sur `exp` / `nbf`
    """
    api_key: str
    api_secret: str
    algorithm: str = "HS256"
    leeway: int = 10


# ==========================================================
# 🧱 Types
# ==========================================================

class SessionTokenClaims(TypedDict, total=False):
    iss: str            # https://{shop}/admin
    dest: str           # https://{shop}
    aud: str            # api key
    sub: str            # identifiant utilisateur staff
    exp: int
    nbf: int
    iat: int
    jti: str
    sid: str


class InvalidSessionToken(Exception):
    pass


# ==========================================================
# 🔍 Décodage / Validation
# ==========================================================

def decode_session_token(token: str, settings: SessionTokenSettings) -> SessionTokenClaims:
    """
    Décode et valide un session token (signature, audience, expiration).
    Lève InvalidSessionToken si le token est refusé.
    """
    try:
        decoded = jwt.decode(
            token,
            settings.api_secret,
            algorithms=[settings.algorithm],
            audience=settings.api_key,
            options={"leeway": settings.leeway},
        )
    except JWTError as e:
        raise InvalidSessionToken(str(e)) from e
    return decoded  # type: ignore[return-value]


def shop_from_claims(claims: SessionTokenClaims) -> str:
    """Extrait le domaine de la boutique (ex: `demo.myshopify.com`) du claim `dest`."""
    dest = claims.get("dest") or ""
    host = urlparse(dest).netloc
    if not host:
        raise InvalidSessionToken("Missing dest claim")
    iss_host = urlparse(claims.get("iss") or "").netloc
    if iss_host and iss_host != host:
        raise InvalidSessionToken("Issuer does not match destination")
    return host


# ==========================================================
# 🎟️ Génération (outillage dev / tests)
# ==========================================================

def create_session_token(
    *,
    shop: str,
    settings: SessionTokenSettings,
    user_id: str = "1",
    ttl: timedelta = timedelta(minutes=1),
) -> str:
    """
    Crée un session token signé comme le ferait App Bridge.
    Utile pour appeler l'API en local sans passer par l'admin.
    """
    now = datetime.now(timezone.utc)
    payload: SessionTokenClaims = {
        "iss": f"https://{shop}/admin",
        "dest": f"https://{shop}",
        "aud": settings.api_key,
        "sub": user_id,
        "exp": int((now + ttl).timestamp()),
        "nbf": int(now.timestamp()),
        "iat": int(now.timestamp()),
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, settings.api_secret, algorithm=settings.algorithm)
