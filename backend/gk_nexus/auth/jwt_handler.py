"""
JWT token handling for authentication.

Provides utilities for creating, validating, and decoding JWT tokens
carrying the user and, optionally, the organization selected for the session.
"""
import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from uuid import UUID

# Configuration
SECRET_KEY = os.getenv("SECRET_KEY", secrets.token_urlsafe(32))
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))  # 24 hours default

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class JWTHandler:
    """JWT token handler for authentication."""

    @staticmethod
    def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a JWT access token.

        Args:
            data: Token payload data
            expires_delta: Token expiration delta

        Returns:
            str: Encoded JWT token
        """
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

    @staticmethod
    def verify_token(token: str) -> Optional[Dict[str, Any]]:
        """
        Verify and decode an access token.

        Returns:
            Optional[Dict[str, Any]]: Token payload if valid, None if invalid, expired or not an access token
        """
        try:
            payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError:
            return None
        if payload.get("type") != "access":
            return None
        return payload

    @staticmethod
    def create_user_token(user_id: UUID, email: str, organization_id: Optional[UUID] = None) -> str:
        """
        Create a JWT token for a user.

        The role is not embedded; it is read from the membership row on
        every request.

        Args:
            user_id: User ID
            email: User email
            organization_id: Organization selected for the session, if any

        Returns:
            str: JWT token
        """
        data = {
            "sub": str(user_id),
            "email": email,
            "type": "access",
        }
        if organization_id is not None:
            data["organization_id"] = str(organization_id)
        return JWTHandler.create_access_token(data)


class PasswordHandler:
    """Password handling utilities."""

    @staticmethod
    def hash_password(password: str) -> str:
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def validate_password_strength(password: str) -> bool:
        """
        Validate password strength.

        Args:
            password: Password to validate

        Returns:
            bool: True if password has at least 8 characters including a letter and a digit
        """
        if len(password) < 8:
            return False
        return any(c.isalpha() for c in password) and any(c.isdigit() for c in password)
