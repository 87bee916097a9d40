"""
private_key_jwt client authentication.

eSignet does not accept client secrets; clients prove their identity with a
short-lived RS256 JWT signed by the key registered for the client.
"""

import json
import secrets
import time
from typing import Any, Dict, Optional, Union

from jose import jwt

CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"
ASSERTION_LIFETIME_SECONDS = 300


def load_private_jwk(raw: Union[str, Dict[str, Any], None]) -> Optional[Dict[str, Any]]:
    """
    Parse a private JWK given as JSON text or dict.

    Raises:
        ValueError: the value is not a JSON object with a key type
    """
    if not raw:
        return None
    jwk = json.loads(raw) if isinstance(raw, str) else dict(raw)
    if not isinstance(jwk, dict) or "kty" not in jwk:
        raise ValueError("OIDC private key must be a JWK object")
    return jwk


def build_client_assertion(
    client_id: str,
    audience: str,
    private_jwk: Dict[str, Any],
    now: Optional[float] = None,
    lifetime_seconds: int = ASSERTION_LIFETIME_SECONDS,
) -> str:
    """
    Sign a client assertion for the token endpoint.

    Args:
        client_id: Used as both issuer and subject
        audience: The token endpoint URL
        private_jwk: RSA private key in JWK form
        now: Epoch seconds (defaults to the current time)
        lifetime_seconds: Assertion validity
    """
    issued_at = int(now if now is not None else time.time())
    payload = {
        "iss": client_id,
        "sub": client_id,
        "aud": audience,
        "jti": secrets.token_hex(16),
        "iat": issued_at,
        "exp": issued_at + lifetime_seconds,
    }
    headers = {"kid": private_jwk["kid"]} if private_jwk.get("kid") else None
    return jwt.encode(payload, private_jwk, algorithm="RS256", headers=headers)
