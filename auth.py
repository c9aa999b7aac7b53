import logging
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from clerk import ClerkClient, IdentityError, clerk_client, verify_token

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "public"

security = HTTPBearer(auto_error=False)


class AuthenticationError(Exception):
    pass


class Identity(BaseModel):
    user_id: str
    role: str
    company_id: Optional[str] = None
    claims: Dict[str, Any] = {}
    metadata: Dict[str, Any] = {}


def resolve_identity(token: Optional[str], client: Optional[ClerkClient] = None) -> Identity:
    """
    Verify a bearer token and resolve the caller's role and tenant.

    Users without a role get DEFAULT_ROLE, which is written back to their
    public metadata so the next login sees it.
    """
    client = client or clerk_client
    if not token:
        raise AuthenticationError("Authentication error: No token provided")
    try:
        claims = verify_token(token)
    except IdentityError as e:
        logger.warning("Token verification failed: %s", e)
        raise AuthenticationError("Authentication error: Token verification failed")

    user_id = claims["sub"]
    try:
        user = client.get_user(user_id)
    except IdentityError as e:
        logger.error("Failed to fetch user %s: %s", user_id, e)
        raise AuthenticationError("Authentication error: Failed to fetch user data")

    metadata = dict(user.get("public_metadata") or {})
    role = metadata.get("role")
    company_id = metadata.get("companyId")

    if not role:
        role = DEFAULT_ROLE
        metadata["role"] = role
        logger.warning("User %s had no role assigned, defaulting to %s", user_id, role)
        try:
            client.update_user_metadata(user_id, metadata)
        except IdentityError as e:
            logger.error("Failed to persist default role for %s: %s", user_id, e)
            raise AuthenticationError("Authentication error: Failed to update user data")

    return Identity(user_id=user_id, role=role, company_id=company_id, claims=claims, metadata=metadata)


def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> Identity:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No authorization token provided")
    try:
        return resolve_identity(credentials.credentials)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))


def require_role(required: str):
    def dep(user: Identity = Depends(get_current_user)) -> Identity:
        if user.role != required:
            raise HTTPException(status_code=403, detail="No Permission for this route")
        return user
    return dep


def require_company(user: Identity = Depends(get_current_user)) -> str:
    if not user.company_id:
        logger.warning("Company ID not found for user %s", user.user_id)
        raise HTTPException(status_code=400, detail="Company ID not found in user metadata")
    return user.company_id
