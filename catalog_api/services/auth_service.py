from typing import Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from catalog_api.core.exceptions import (
    DuplicateEmailError,
    InvalidCredentialsError,
    ValidationError,
)
from catalog_api.core.security import (
    MAX_PASSWORD_BYTES,
    create_access_token,
    hash_password,
    password_too_long,
    verify_password,
)
from catalog_api.dao.user_dao import user_dao
from catalog_api.models.user import UserRead
from catalog_api.schemas.auth_schemas import TokenEnvelope

logger = structlog.get_logger()


def _require(**fields: Optional[str]) -> None:
    missing = [name for name, value in fields.items() if value is None or not str(value).strip()]
    if missing:
        raise ValidationError.missing_fields(missing)


class AuthService:
    """Signup and login against the user store"""

    def __init__(self):
        self.user_dao = user_dao

    async def signup(
        self, db: AsyncSession, name: Optional[str], email: Optional[str], password: Optional[str]
    ) -> TokenEnvelope:
        _require(name=name, email=email, password=password)
        if password_too_long(password):
            raise ValidationError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
                {"field": "password", "max_bytes": MAX_PASSWORD_BYTES},
            )
        email = email.strip().lower()

        if await self.user_dao.get_by_email(db, email):
            logger.warning("Signup rejected: email already registered", email=email)
            raise DuplicateEmailError("User already exists", {"email": email})

        user_data = {
            "name": name.strip(),
            "email": email,
            "password": await run_in_threadpool(hash_password, password),
        }
        try:
            user = await self.user_dao.create(db, obj_in=user_data)
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email
            raise DuplicateEmailError("User already exists", {"email": email})

        logger.info("User registered", user_id=str(user.id))
        return TokenEnvelope(
            message="User registered successfully",
            token=create_access_token(str(user.id)),
            user=UserRead.model_validate(user, from_attributes=True),
        )

    async def login(self, db: AsyncSession, email: Optional[str], password: Optional[str]) -> TokenEnvelope:
        _require(email=email, password=password)
        email = email.strip().lower()

        user = await self.user_dao.get_by_email(db, email)
        if not user:
            logger.warning("Authentication failed: user not found", email=email)
            raise InvalidCredentialsError()
        if not await run_in_threadpool(verify_password, password, user.password):
            logger.warning("Authentication failed: wrong password", email=email)
            raise InvalidCredentialsError()

        logger.info("User logged in", user_id=str(user.id))
        return TokenEnvelope(
            message="Login successful",
            token=create_access_token(str(user.id)),
            user=UserRead.model_validate(user, from_attributes=True),
        )


auth_service = AuthService()
