# beneficiary_api/services/auth_service.py
import logging
from datetime import datetime, timedelta
from typing import Optional
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from fastapi import HTTPException, status

from beneficiary_api.configs import env, configs

logger = logging.getLogger(__name__)

jwt_settings = configs.get("jwt") or {}
access_token_expire_minutes = jwt_settings.get("access_token_expire_minutes", 1440)
algorithm = jwt_settings.get("algorithm", "HS256")
secret_key = env.get("SECRET_KEY")

if not secret_key:
    logger.warning("SECRET_KEY is not set; tokens cannot be issued or verified")


def credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


class AuthService:
    """Password hashing and bearer tokens. Tokens identify the user by email (`sub`)."""

    def __init__(self, expire_minutes: int = access_token_expire_minutes):
        self.pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
        self.expire_minutes = expire_minutes

    def hash_password(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        return self.pwd_context.verify(plain_password, hashed_password)

    def create_access_token(
        self, email: str, role: str, expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Signed token for a signed-in user.
        Args:
            email: Stored as the `sub` claim; looked up again on every request.
            role: Informational only, the role is re-read from the user record.
            expires_delta: Overrides `jwt.access_token_expire_minutes`.
        """
        issued = datetime.utcnow()
        expire = issued + (expires_delta or timedelta(minutes=self.expire_minutes))
        claims = {"sub": email, "role": role, "iat": issued, "exp": expire}
        return jwt.encode(claims, secret_key, algorithm=algorithm)

    def token_subject(self, token: str) -> str:
        """Email carried by a valid token; raises 401 for expired or malformed tokens."""
        try:
            payload = jwt.decode(token, secret_key, algorithms=[algorithm])
        except ExpiredSignatureError:
            raise credentials_error("Token has expired")
        except JWTError:
            raise credentials_error()

        email = payload.get("sub")
        if not email:
            raise credentials_error()
        return email


auth_service = AuthService()
