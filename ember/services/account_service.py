"""Account Service — registration, login, and identity-store lookups.

Invariants:
    - Usernames and emails stored lower-cased; uniqueness checked case-insensitively
    - Login failures never reveal whether the email exists (InvalidCredentialsError)
    - Duplicate registration -> DuplicateUserError, also when the race is lost
      at the unique constraint
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ember.core.errors import (
    DuplicateUserError, InvalidCredentialsError, NotFoundError,
)
from ember.infrastructure.database import to_store_error
from ember.infrastructure.security import (
    create_access_token, hash_password, verify_password,
)
from ember.models.user import User

logger = logging.getLogger(__name__)


class AccountService:
    """User registration and authentication."""

    def __init__(
        self,
        db: AsyncSession,
        secret_key: str,
        algorithm: str = "HS256",
        token_expire_minutes: int = 60,
        bcrypt_rounds: int = 12,
    ):
        self.db = db
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._token_expire_minutes = token_expire_minutes
        self._bcrypt_rounds = bcrypt_rounds

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        display_name: str | None = None,
    ) -> User:
        username = username.lower()
        email = email.lower()
        try:
            if await self._first(select(User.id).where(User.username == username)):
                raise DuplicateUserError("username")
            if await self._first(select(User.id).where(User.email == email)):
                raise DuplicateUserError("email")

            user = User(
                username=username,
                email=email,
                password_hash=hash_password(password, self._bcrypt_rounds),
                display_name=display_name,
            )
            self.db.add(user)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateUserError("username or email") from None
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise to_store_error(e) from e

        logger.info("User registered", extra={"user_id": user.id})
        return user

    async def login(self, email: str, password: str) -> str:
        """Return an access token for valid credentials."""
        try:
            result = await self.db.execute(
                select(User).where(User.email == email.lower()),
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise to_store_error(e) from e
        user = result.scalar_one_or_none()
        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        return create_access_token(
            user.id, self._secret_key, self._algorithm,
            self._token_expire_minutes,
        )

    async def get_user(self, user_id: UUID) -> User:
        try:
            result = await self.db.execute(select(User).where(User.id == user_id))
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise to_store_error(e) from e
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User", str(user_id))
        return user

    async def _first(self, statement):
        result = await self.db.execute(statement)
        return result.first()
