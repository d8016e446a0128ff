from typing import List

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 72  # bcrypt only looks at the first 72 bytes


class SecurityUtils:
    """Password hashing and verification for customers, admins and vendors"""

    @staticmethod
    def hash_password(plain_password: str) -> str:
        return pwd_context.hash(plain_password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        if not hashed_password:
            return False
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def password_problems(plain_password: str) -> List[str]:
        """Return the reasons a password is rejected; empty when acceptable."""
        problems: List[str] = []
        if len(plain_password) < MIN_PASSWORD_LENGTH:
            problems.append(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if len(plain_password.encode("utf-8")) > MAX_PASSWORD_LENGTH:
            problems.append(
                f"Password must be at most {MAX_PASSWORD_LENGTH} bytes long"
            )
        if plain_password.strip() != plain_password:
            problems.append("Password must not start or end with whitespace")
        return problems
