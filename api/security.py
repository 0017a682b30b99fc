import secrets
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

# reads environment variables (and .env) and casts them to the right type
from pydantic_settings import BaseSettings, SettingsConfigDict

security = HTTPBearer(auto_error=False)


class AuthSettings(BaseSettings):
    # AUTH_TOKENS='{"<token>": "<user id>"}'
    auth_tokens: Dict[str, str] = {}

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache(maxsize=1)
def get_auth_settings() -> AuthSettings:
    return AuthSettings()


@dataclass
class AuthenticatedUser:
    user_id: str


def _lookup_user(token: str, tokens: Dict[str, str]) -> Optional[str]:
    for known, user_id in tokens.items():
        if secrets.compare_digest(known, token):
            return user_id
    return None


async def require_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: AuthSettings = Depends(get_auth_settings),
) -> AuthenticatedUser:
    """
    Dependency that requires a known bearer token.

    Raises:
        HTTPException 503: no tokens configured
        HTTPException 401: missing or unknown token
    """
    if not settings.auth_tokens:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication not configured",
        )

    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = _lookup_user(credentials.credentials, settings.auth_tokens)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return AuthenticatedUser(user_id=user_id)
