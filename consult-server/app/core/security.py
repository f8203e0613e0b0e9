"""JWT helpers and the authenticated-principal dependencies.

Accounts live in an external identity service; a token only has to carry the
account id and role.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.core.config import get_settings
from app.schemas import TokenData

ROLE_USER = "user"
ROLE_PROVIDER = "provider"
ROLE_ADMIN = "admin"
ROLES = {ROLE_USER, ROLE_PROVIDER, ROLE_ADMIN}

security = HTTPBearer()


@dataclass(slots=True, frozen=True)
class AccountPrincipal:
    account_id: str
    role: str = ROLE_USER

    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def is_provider(self) -> bool:
        return self.role == ROLE_PROVIDER


def create_access_token(account_id: str, role: str = ROLE_USER, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    expire_delta = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": account_id,
        "role": role,
        "exp": datetime.now(timezone.utc) + expire_delta,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> TokenData:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials") from exc

    account_id = payload.get("sub")
    role = payload.get("role")
    if not account_id or role not in ROLES:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials")
    return TokenData(account_id=account_id, role=role)


async def get_current_account(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AccountPrincipal:
    token_data = decode_access_token(credentials.credentials)
    return AccountPrincipal(account_id=token_data.account_id, role=token_data.role)


async def get_current_provider(account: AccountPrincipal = Depends(get_current_account)) -> AccountPrincipal:
    if not account.is_provider():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Provider role required")
    return account


async def get_current_admin(account: AccountPrincipal = Depends(get_current_account)) -> AccountPrincipal:
    if not account.is_admin():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return account
