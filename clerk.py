"""
Identity provider (Clerk)

Session tokens are verified locally with the instance's PEM public key.
User profiles and their public metadata (role, companyId) are read and
written through the backend REST API.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx
from jose import ExpiredSignatureError, JWTError, jwt

from config import (
    CLERK_API_URL,
    CLERK_AUTHORIZED_PARTIES,
    CLERK_JWT_KEY,
    CLERK_SECRET_KEY,
    CLERK_TIMEOUT,
)

logger = logging.getLogger(__name__)

JWT_ALGORITHMS = ["RS256"]


class IdentityError(Exception):
    """Token verification or identity provider API failure."""


def verify_token(
    token: str,
    jwt_key: Optional[str] = None,
    authorized_parties: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Verify a session token and return its claims.

    The azp claim, when present, must match one of the authorized parties.
    """
    key = jwt_key if jwt_key is not None else CLERK_JWT_KEY
    parties = authorized_parties if authorized_parties is not None else CLERK_AUTHORIZED_PARTIES
    if not key:
        raise IdentityError("CLERK_JWT_KEY is not configured")
    if not isinstance(token, str) or not token:
        raise IdentityError("Token must be a non-empty string")
    try:
        claims = jwt.decode(token, key, algorithms=JWT_ALGORITHMS, options={"verify_aud": False})
    except ExpiredSignatureError:
        raise IdentityError("Token expired")
    except (JWTError, ValueError, TypeError, AttributeError) as e:
        raise IdentityError(f"Invalid token: {e}")
    if not isinstance(claims, dict):
        raise IdentityError("Token claims are not an object")

    azp = claims.get("azp")
    if azp and parties and str(azp).rstrip("/") not in parties:
        raise IdentityError(f"Unauthorized party: {azp}")
    if not claims.get("sub"):
        raise IdentityError("Token has no subject")
    return claims


class ClerkClient:
    def __init__(
        self,
        api_url: str = CLERK_API_URL,
        secret_key: str = CLERK_SECRET_KEY,
        timeout: float = CLERK_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.secret_key = secret_key
        self.timeout = timeout
        self.transport = transport

    def _request(self, method: str, path: str, json: Optional[dict] = None) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {self.secret_key}"}
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.request(method, f"{self.api_url}{path}", json=json, headers=headers)
        except httpx.RequestError as e:
            raise IdentityError(f"Identity provider unreachable: {e}")
        if resp.status_code >= 400:
            raise IdentityError(f"Identity provider returned {resp.status_code} for {method} {path}")
        try:
            body = resp.json()
        except ValueError:
            raise IdentityError(f"Identity provider sent a non-JSON body for {method} {path}")
        if not isinstance(body, dict):
            raise IdentityError(f"Identity provider sent an unexpected body for {method} {path}")
        return body

    def get_user(self, user_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/users/{user_id}")

    def update_user_metadata(self, user_id: str, public_metadata: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", f"/users/{user_id}/metadata", json={"public_metadata": public_metadata})

    def create_user(self, email: str, password: str, public_metadata: Dict[str, Any]) -> Dict[str, Any]:
        payload = {
            "email_address": [email],
            "password": password,
            "public_metadata": public_metadata,
        }
        user = self._request("POST", "/users", json=payload)
        logger.info("Created identity provider user %s", user.get("id"))
        return user


clerk_client = ClerkClient()
