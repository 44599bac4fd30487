"""
Authentication dependencies for Toolsy Store Backend

Two kinds of callers exist:
- Admin users sign in with Supabase Auth; their access token is a JWT signed
  with the project's JWT secret. Admin rights come from the user_roles table.
- Customers never have accounts. They unlock the subscription portal with the
  auth code handed out at checkout (X-Auth-Code header).
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import BaseModel

from toolsy.core.config import settings


# Security scheme for bearer tokens
security = HTTPBearer(auto_error=False)

SUPABASE_JWT_AUDIENCE = "authenticated"
JWT_ALGORITHM = "HS256"


class TokenUser(BaseModel):
    """User data extracted from a Supabase access token"""
    id: str
    email: str
    role: str = "user"


def decode_supabase_token(token: str) -> dict:
    """
    Decode and validate a Supabase access token.

    Supabase access token structure:
    {
        "sub": "user uuid",
        "email": "admin@toolsy.store",
        "aud": "authenticated",
        "role": "authenticated",
        "exp": 1234567890
    }
    """
    secret = settings.SUPABASE_JWT_SECRET
    if not secret:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication is not configured"
        )

    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            audience=SUPABASE_JWT_AUDIENCE
        )
    except JWTError as e:
        error_msg = str(e).lower()
        if "expired" in error_msg:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
                headers={"WWW-Authenticate": "Bearer"}
            )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"}
        )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenUser:
    """
    Dependency that extracts and validates the current user from JWT.

    Usage:
        @router.get("/protected")
        async def protected_route(user: TokenUser = Depends(get_current_user)):
            return {"message": f"Hello {user.email}"}
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"}
        )

    payload = decode_supabase_token(credentials.credentials)

    user_id = payload.get("sub")
    email = payload.get("email")

    if not user_id or not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload: missing user id or email",
            headers={"WWW-Authenticate": "Bearer"}
        )

    return TokenUser(id=user_id, email=email)


async def require_admin(user: TokenUser = Depends(get_current_user)) -> TokenUser:
    """
    Dependency for admin-only endpoints.

    The token only proves identity; the admin role is looked up in user_roles.
    """
    from toolsy.repositories.admin_repository import AdminRepository

    if not AdminRepository().has_role(user.id, "admin"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Required role: admin"
        )

    return user.model_copy(update={"role": "admin"})


async def require_auth_code(
    x_auth_code: Optional[str] = Header(None, alias="X-Auth-Code")
):
    """
    Dependency for subscription portal endpoints.

    Returns the active AuthCode for the header value.
    """
    from toolsy.repositories.subscription_repository import SubscriptionRepository

    if not x_auth_code or not x_auth_code.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Auth-Code header"
        )

    auth_code = SubscriptionRepository().find_active_auth_code(x_auth_code.strip().upper())
    if not auth_code:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or inactive auth code"
        )

    return auth_code
