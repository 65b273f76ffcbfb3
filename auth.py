"""
TaxDesk Server - Authentication Utilities

This module provides authentication functionality including:
- Bearer credential parsing (local "mock-token-<id>" vs identity provider token)
- Identity provider token verification (JWT signature via python-jose)
- Authentication dependency for protected routes
- Password login

Passwords are stored as bcrypt hashes (see DatabaseManager.HashPassword).
"""

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

import config
from errors import Unauthenticated
from models.database import Role, User
from models.infrastructure import (
    Principal, LocalCredential, ExternalCredential, ParseCredential
)
from managers.database_manager import DatabaseManager

logger = logging.getLogger(__name__)

# Security scheme for FastAPI; missing headers are reported by GetCurrentPrincipal
security = HTTPBearer(auto_error=False)


# ==================== Principal Helpers ====================

def PrincipalFromUser(user: User) -> Principal:
    """
    Build the principal for a stored user

    Args:
        user: User row

    Returns:
        Principal: Authenticated actor
    """
    return Principal(
        user_id=user.user_id,
        email=user.email,
        full_name=user.display_name,
        role=user.role
    )


def IssueLocalToken(user: User) -> str:
    """
    Create the local credential for a user

    Args:
        user: User row

    Returns:
        str: "mock-token-<user_id>"
    """
    return LocalCredential(user_id=user.user_id).Encode()


# ==================== Identity Provider Tokens ====================

def VerifyExternalToken(token: str) -> dict:
    """
    Verify an identity provider token and return its claims

    Args:
        token: Signed JWT issued by the identity provider

    Returns:
        dict: Verified claims

    Raises:
        Unauthenticated: If verification is unavailable or fails
    """
    if not config.IDP_SECRET:
        raise Unauthenticated(
            "Identity provider authentication is not available in this environment. "
            "Use mock-token-<user_id> for testing."
        )

    try:
        claims = jwt.decode(
            token,
            config.IDP_SECRET,
            algorithms=[config.IDP_ALGORITHM],
            audience=config.IDP_AUDIENCE or None,
            options={"verify_aud": bool(config.IDP_AUDIENCE)}
        )
    except JWTError as e:
        logger.warning(f"Rejected identity provider token: {str(e)}")
        raise Unauthenticated("Invalid token")

    return claims


# ==================== Session Resolution ====================

def ResolvePrincipal(token: str, db_manager: DatabaseManager) -> Principal:
    """
    Resolve a bearer token to the authenticated principal

    Args:
        token: Raw bearer token
        db_manager: DatabaseManager instance

    Returns:
        Principal: Authenticated actor

    Raises:
        Unauthenticated: If the credential is invalid or the user is unknown
    """
    credential = ParseCredential(token)

    if isinstance(credential, LocalCredential):
        session = db_manager.GetSession()
        try:
            user = db_manager.GetUserById(session, credential.user_id)
            if user is None:
                raise Unauthenticated("User not found")
            return PrincipalFromUser(user)
        finally:
            session.close()

    if isinstance(credential, ExternalCredential):
        claims = VerifyExternalToken(credential.token)
        subject = claims.get("uid") or claims.get("user_id") or claims.get("sub")
        if not subject:
            raise Unauthenticated("Invalid token")

        session = db_manager.GetSession()
        try:
            user = db_manager.GetUserById(session, str(subject))
            if user is not None:
                return PrincipalFromUser(user)
        finally:
            session.close()

        # Identity known to the provider but not registered locally
        email = claims.get("email", "")
        return Principal(
            user_id=str(subject),
            email=email,
            full_name=claims.get("name") or email.split("@")[0],
            role=Role.STANDARD
        )

    raise Unauthenticated("Unsupported credential")


# ==================== Authentication Dependencies ====================

def GetCurrentPrincipal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Principal:
    """
    FastAPI dependency to get the current authenticated principal

    Args:
        credentials: HTTP Bearer token from Authorization header

    Returns:
        Principal: The authenticated actor

    Raises:
        Unauthenticated: If authentication fails
    """
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise Unauthenticated("Token not provided")

    from database import db_manager

    return ResolvePrincipal(credentials.credentials, db_manager)


# ==================== Authentication Helper Functions ====================

def AuthenticateUser(db_manager: DatabaseManager, email: str, password: str) -> Optional[User]:
    """
    Authenticate a user with e-mail and password

    Args:
        db_manager: DatabaseManager instance
        email: E-mail address
        password: Plain text password

    Returns:
        User: The user if authentication succeeded, None otherwise
    """
    session = db_manager.GetSession()

    try:
        user = db_manager.GetUserByEmail(session, email)

        if not user:
            return None

        if not db_manager.VerifyPassword(password, user.password_hash):
            return None

        return user

    finally:
        session.close()
