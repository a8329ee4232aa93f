"""Route Dependencies — caller identity and per-request service construction.

Invariants:
    - get_current_user_id is the only place a bearer credential becomes a UserId
    - Engines are built per request around the request's AsyncSession

Design Decisions:
    - HTTPBearer(auto_error=False): a missing header becomes UnauthenticatedError,
      so it goes through the same error envelope as a bad token
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ember.config import Settings, get_settings
from ember.core.domain_types import UserId
from ember.core.errors import UnauthenticatedError
from ember.core.repository_protocols import CredentialVerifier
from ember.infrastructure.database import get_db
from ember.infrastructure.security import JWTCredentialVerifier
from ember.services.account_service import AccountService
from ember.services.pin_engine import PinEngine
from ember.services.relationship_engine import RelationshipEngine

bearer_scheme = HTTPBearer(auto_error=False)


def get_credential_verifier(
    settings: Settings = Depends(get_settings),
) -> CredentialVerifier:
    return JWTCredentialVerifier(settings.jwt_secret_key, settings.jwt_algorithm)


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    verifier: CredentialVerifier = Depends(get_credential_verifier),
) -> UserId:
    if credentials is None:
        raise UnauthenticatedError("Missing bearer token")
    return verifier.verify(credentials.credentials)


def get_relationship_engine(
    db: AsyncSession = Depends(get_db),
) -> RelationshipEngine:
    return RelationshipEngine(db)


def get_pin_engine(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> PinEngine:
    return PinEngine(db, max_radius_km=settings.nearby_max_radius_km)


def get_account_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(
        db,
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        token_expire_minutes=settings.access_token_expire_minutes,
        bcrypt_rounds=settings.bcrypt_rounds,
    )
