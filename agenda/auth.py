import base64
import json
import logging
import time

import httpx
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.x509 import load_pem_x509_certificate
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import FIREBASE_PROJECT_ID
from .database import get_db
from .models import Provider

logger = logging.getLogger(__name__)

security = HTTPBearer()

GOOGLE_CERTS_URL = (
    "https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com"
)

# Cache for Google's public keys
_cached_keys = None


async def get_google_public_keys():
    """Fetch Google's public keys for Firebase token verification"""
    global _cached_keys
    if _cached_keys:
        return _cached_keys

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(GOOGLE_CERTS_URL)
            if response.status_code == 200:
                _cached_keys = response.json()
                logger.info(f"✅ Fetched {len(_cached_keys)} Google public keys")
                return _cached_keys
            logger.error(f"❌ Failed to fetch Google public keys: HTTP {response.status_code}")
    except Exception as e:
        logger.error(f"❌ Error fetching Google public keys: {str(e)}")
    return None


def _b64decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


async def verify_firebase_token(token: str) -> dict:
    """
    Verify a Firebase ID token: RS256 signature against Google's
    certificates, then audience, issuer, expiry and issued-at claims.
    """
    global _cached_keys

    if not FIREBASE_PROJECT_ID:
        logger.error("❌ FIREBASE_PROJECT_ID not configured")
        raise HTTPException(status_code=500, detail="Firebase not configured")

    parts = token.split(".")
    if len(parts) != 3:
        raise HTTPException(status_code=401, detail="Invalid token format")
    header_b64, payload_b64, signature_b64 = parts

    try:
        header = json.loads(_b64decode(header_b64))
    except Exception as e:
        raise HTTPException(status_code=401, detail="Invalid token header") from e

    kid = header.get("kid")
    if header.get("alg") != "RS256" or not kid:
        logger.error(f"❌ Invalid token header: alg={header.get('alg')}, kid={kid}")
        raise HTTPException(status_code=401, detail="Invalid token header")

    public_keys = await get_google_public_keys()
    if not public_keys or kid not in public_keys:
        # Keys rotate; refetch once before giving up
        _cached_keys = None
        public_keys = await get_google_public_keys()
        if not public_keys or kid not in public_keys:
            logger.error(f"❌ Key ID {kid} not found in public keys after retry")
            raise HTTPException(status_code=401, detail="Unable to verify token signature")

    try:
        cert = load_pem_x509_certificate(public_keys[kid].encode())
        cert.public_key().verify(
            _b64decode(signature_b64),
            f"{header_b64}.{payload_b64}".encode(),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
        payload = json.loads(_b64decode(payload_b64))
    except Exception as e:
        logger.error(f"❌ Token signature verification failed: {type(e).__name__}: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token signature") from e

    if payload.get("aud") != FIREBASE_PROJECT_ID:
        raise HTTPException(status_code=401, detail="Invalid token audience")
    if payload.get("iss") != f"https://securetoken.google.com/{FIREBASE_PROJECT_ID}":
        raise HTTPException(status_code=401, detail="Invalid token issuer")

    now = time.time()
    if payload.get("exp", 0) < now:
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please refresh your session.",
            headers={"X-Token-Expired": "true"},
        )
    if payload.get("iat", 0) > now + 60:  # Allow 60 seconds clock skew
        logger.warning("⚠️ Token issued in the future")
        raise HTTPException(status_code=401, detail="Invalid token")

    return payload


async def get_firebase_claims(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """Verified token claims with a normalized `uid`, for routes that run before a profile exists"""
    claims = await verify_firebase_token(credentials.credentials)

    # Firebase ID tokens use 'sub' as the user ID claim
    uid = claims.get("sub") or claims.get("user_id") or claims.get("uid")
    if not uid:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(claims.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")
    claims["uid"] = uid
    return claims


async def get_current_provider(
    claims: dict = Depends(get_firebase_claims),
    db: Session = Depends(get_db),
) -> Provider:
    """Provider account owned by the authenticated staff user"""
    provider = db.query(Provider).filter(Provider.firebase_uid == claims["uid"]).first()
    if not provider:
        logger.info(f"ℹ️ No provider profile for {claims.get('email')}")
        raise HTTPException(
            status_code=404,
            detail="Provider profile not found. Create one with POST /providers/me.",
        )
    return provider
