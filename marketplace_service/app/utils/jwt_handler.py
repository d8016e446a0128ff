"""
JWT handling for marketplace sessions.

Customers and admins carry their user id; vendors carry their vendor id.
The role travels in the `roles` claim so one decoder serves all portals.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError
from pydantic import BaseModel


class TokenData(BaseModel):
    """Decoded access token"""

    user_id: str
    email: str
    name: str = ""
    roles: list[str] = []
    expires_at: datetime

    @property
    def role(self) -> str:
        return self.roles[0] if self.roles else "customer"


class JWTHandler:
    """Encode and decode signed access tokens."""

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        self.secret_key = secret_key
        self.algorithm = algorithm

    def encode_token(
        self, payload: Dict[str, Any], expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Encode payload into a JWT.

        Args:
            payload: Claims; must include `user_id`
            expires_delta: Lifetime (default: 30 minutes)
        """
        to_encode = payload.copy()
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=30))

        to_encode.update({"exp": expire, "iat": now.timestamp(), "type": "access"})

        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def create_access_token(
        self,
        subject_id: int,
        email: str,
        role: str,
        name: str = "",
        expires_minutes: int = 30,
    ) -> str:
        return self.encode_token(
            {"user_id": str(subject_id), "email": email, "name": name, "roles": [role]},
            expires_delta=timedelta(minutes=expires_minutes),
        )

    def decode_token(self, token: str) -> TokenData:
        """
        Decode and validate a JWT.

        Raises:
            ValueError: If the token is invalid, expired, or malformed
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise ValueError("Token has expired")
        except JWTError as e:
            raise ValueError(f"Token validation failed: {e}")

        user_id = payload.get("user_id")
        exp = payload.get("exp")
        if not user_id or not exp:
            raise ValueError("Invalid token payload: missing user_id or exp")

        return TokenData(
            user_id=str(user_id),
            email=payload.get("email", ""),
            name=payload.get("name", ""),
            roles=payload.get("roles", []),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
