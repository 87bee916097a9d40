"""
OIDC relay for the eSignet authorization-code flow.

Discovers the provider's endpoints, exchanges authorization codes for
tokens, fetches user info and verifies ID tokens against the provider's
published JWKS.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from jose import jwt, JWTError

from booklet.services.oidc.client_assertion import (
    CLIENT_ASSERTION_TYPE,
    build_client_assertion,
)

logger = logging.getLogger(__name__)


class DiscoveryError(Exception):
    """The provider's discovery document could not be loaded."""


class UpstreamError(Exception):
    """
    The provider answered with a non-2xx status.

    Carries the status and body so they can be relayed to the caller as is.
    """

    def __init__(self, status_code: int, body: Any):
        super().__init__(f"OIDC provider returned {status_code}")
        self.status_code = status_code
        self.body = body


class IdTokenVerificationError(Exception):
    """The ID token signature or claims did not verify."""


class OIDCRelay:
    """
    Relays the authorization-code exchange to an OIDC provider.
    """

    ID_TOKEN_ALGORITHMS = ["RS256", "RS384", "RS512", "PS256", "ES256"]

    def __init__(
        self,
        issuer: str,
        client_id: str,
        redirect_uri: str,
        client_secret: Optional[str] = None,
        private_jwk: Optional[Dict[str, Any]] = None,
        allow_unverified_id_token: bool = False,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize OIDCRelay.

        Args:
            issuer: Provider issuer URL (discovery lives under it)
            client_id: Registered client ID
            redirect_uri: Redirect URI registered for the client
            client_secret: Secret for client_secret_post authentication
            private_jwk: Private JWK for private_key_jwt authentication (wins over the secret)
            allow_unverified_id_token: Serve unverified claims when verification fails
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.issuer = issuer
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self._client_secret = client_secret
        self._private_jwk = private_jwk
        self.allow_unverified_id_token = allow_unverified_id_token
        self._timeout = timeout
        self._transport = transport

        self._discovery: Optional[Dict[str, Any]] = None
        self._jwks: Optional[Dict[str, Any]] = None

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    # ─────────────────────────────────────────────────────────────────
    # Discovery
    # ─────────────────────────────────────────────────────────────────

    async def discover(self, field: Optional[str] = None) -> Any:
        """
        Get the discovery document (or one field of it).

        The document is cached after the first successful fetch.

        Raises:
            DiscoveryError: fetch failed or returned a non-2xx status
        """
        if self._discovery is None:
            url = f"{self.issuer.rstrip('/')}/.well-known/openid-configuration"
            try:
                async with self._client() as client:
                    response = await client.get(url)
                response.raise_for_status()
                document = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"OIDC discovery failed for {url}: {e}")
                raise DiscoveryError(f"discovery_failed: {e}") from e

            if not isinstance(document, dict):
                raise DiscoveryError("discovery_failed: document is not an object")
            self._discovery = document

        return self._discovery.get(field) if field else self._discovery

    # ─────────────────────────────────────────────────────────────────
    # Code exchange
    # ─────────────────────────────────────────────────────────────────

    def _token_request_form(self, code: str, token_endpoint: str) -> Dict[str, str]:
        form = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
        }
        if self._private_jwk:
            form["client_assertion_type"] = CLIENT_ASSERTION_TYPE
            form["client_assertion"] = build_client_assertion(
                self.client_id, token_endpoint, self._private_jwk
            )
        elif self._client_secret:
            form["client_secret"] = self._client_secret
        return form

    async def request_tokens(self, code: str) -> Dict[str, Any]:
        """
        POST the authorization code to the token endpoint.

        Raises:
            DiscoveryError: endpoint unknown
            UpstreamError: provider rejected the exchange
            httpx.HTTPError: provider unreachable
        """
        token_endpoint = await self.discover("token_endpoint")
        if not token_endpoint:
            raise DiscoveryError("discovery_failed: no token_endpoint")

        async with self._client() as client:
            response = await client.post(
                token_endpoint,
                data=self._token_request_form(code, token_endpoint),
                headers={"Accept": "application/json"},
            )

        try:
            body = response.json()
        except ValueError:
            body = {"error": "invalid_token_response", "details": response.text}

        if response.is_error:
            logger.error(f"Token exchange failed: {response.status_code} {response.text}")
            raise UpstreamError(response.status_code, body)

        if not isinstance(body, dict):
            raise UpstreamError(502, {"error": "invalid_token_response"})

        return body

    async def exchange_code(self, code: str, state: Optional[str] = None) -> Dict[str, Any]:
        """
        Exchange a code and enrich the provider's token response.

        Returns:
            The token response plus id_token_claims, id_token_verified,
            userInfo and state

        Raises:
            IdTokenVerificationError: ID token failed verification and
                unverified claims are not allowed
        """
        tokens = await self.request_tokens(code)
        access_token = tokens.get("access_token")
        id_token = tokens.get("id_token")

        user_info = await self.fetch_userinfo(access_token) if access_token else None

        claims = None
        verified = False
        if id_token:
            claims, verified = await self._check_id_token(id_token, access_token)

        return {
            **tokens,
            "id_token_claims": claims,
            "id_token_verified": verified,
            "userInfo": user_info,
            "state": state,
        }

    async def _check_id_token(
        self,
        id_token: str,
        access_token: Optional[str] = None,
    ) -> tuple:
        try:
            return await self.verify_id_token(id_token, access_token), True
        except IdTokenVerificationError as e:
            if not self.allow_unverified_id_token:
                raise
            logger.warning(f"ID token verify failed, continuing with unverified claims: {e}")
            return decode_unverified(id_token), False

    # ─────────────────────────────────────────────────────────────────
    # User info
    # ─────────────────────────────────────────────────────────────────

    async def fetch_userinfo(self, access_token: str) -> Optional[Dict[str, Any]]:
        """
        Fetch user info; failures are logged and yield None.

        Providers may answer with plain JSON or with a signed JWS, whose
        payload is decoded.
        """
        try:
            endpoint = await self.discover("userinfo_endpoint")
        except DiscoveryError:
            return None
        if not endpoint:
            return None

        try:
            async with self._client() as client:
                response = await client.get(
                    endpoint,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as e:
            logger.warning(f"User info request failed: {e}")
            return None

        if response.is_error:
            logger.warning(f"Failed to fetch user info, status: {response.status_code}")
            return None

        try:
            return response.json()
        except ValueError:
            text = response.text.strip()
            claims = decode_unverified(text)
            if claims is not None:
                return claims
            logger.warning("User info neither JSON nor decodable JWS; returning raw")
            return {"raw": text}

    # ─────────────────────────────────────────────────────────────────
    # ID token verification
    # ─────────────────────────────────────────────────────────────────

    async def _get_jwks(self, refresh: bool = False) -> Dict[str, Any]:
        if self._jwks is None or refresh:
            jwks_uri = await self.discover("jwks_uri")
            if not jwks_uri:
                raise IdTokenVerificationError("provider publishes no jwks_uri")
            try:
                async with self._client() as client:
                    response = await client.get(jwks_uri)
                response.raise_for_status()
                jwks = response.json()
            except (httpx.HTTPError, ValueError) as e:
                raise IdTokenVerificationError(f"JWKS fetch failed: {e}") from e
            if not isinstance(jwks, dict) or not isinstance(jwks.get("keys"), list):
                raise IdTokenVerificationError("JWKS document has no keys")
            self._jwks = jwks
        return self._jwks

    async def _signing_keys(self, kid: Optional[str]) -> List[Dict[str, Any]]:
        jwks = await self._get_jwks()
        if not kid:
            return jwks["keys"]

        matching = [k for k in jwks["keys"] if k.get("kid") == kid]
        if not matching:
            # Provider may have rotated its keys since we cached them
            jwks = await self._get_jwks(refresh=True)
            matching = [k for k in jwks["keys"] if k.get("kid") == kid]
        return matching

    async def verify_id_token(
        self,
        id_token: str,
        access_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Verify signature, issuer, audience and expiry of an ID token.

        Raises:
            IdTokenVerificationError: on any verification failure
        """
        try:
            header = jwt.get_unverified_header(id_token)
        except JWTError as e:
            raise IdTokenVerificationError(f"malformed ID token: {e}") from e

        try:
            keys = await self._signing_keys(header.get("kid"))
        except DiscoveryError as e:
            raise IdTokenVerificationError(str(e)) from e

        if not keys:
            raise IdTokenVerificationError(f"no JWKS key matches kid {header.get('kid')}")

        try:
            return jwt.decode(
                id_token,
                {"keys": keys},
                algorithms=self.ID_TOKEN_ALGORITHMS,
                audience=self.client_id,
                issuer=self.issuer,
                access_token=access_token,
                options={"verify_at_hash": access_token is not None},
            )
        except JWTError as e:
            raise IdTokenVerificationError(str(e)) from e


def decode_unverified(token: str) -> Optional[Dict[str, Any]]:
    """Read a JWS payload without checking its signature; None if not a JWS."""
    if not isinstance(token, str) or token.count(".") != 2:
        return None
    try:
        return jwt.get_unverified_claims(token)
    except JWTError:
        return None
