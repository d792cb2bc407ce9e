from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from catalog_api.core.database import get_async_session
from catalog_api.core.security import validate_request
from catalog_api.dao.user_dao import user_dao
from catalog_api.models.user import UserRead
from catalog_api.schemas.auth_schemas import LoginRequest, SignupRequest, TokenEnvelope, UserEnvelope
from catalog_api.schemas.envelopes import ErrorEnvelope
from catalog_api.services.auth_service import auth_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "/signup",
    response_model=TokenEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorEnvelope}},
)
async def signup(request: SignupRequest, db: AsyncSession = Depends(get_async_session)):
    return await auth_service.signup(db, request.name, request.email, request.password)


@router.post("/login", response_model=TokenEnvelope, responses={400: {"model": ErrorEnvelope}})
async def login(request: LoginRequest, db: AsyncSession = Depends(get_async_session)):
    return await auth_service.login(db, request.email, request.password)


@router.get("/me", response_model=UserEnvelope, responses={401: {"model": ErrorEnvelope}})
async def current_user(
    user=Depends(validate_request),
    db: AsyncSession = Depends(get_async_session)
):
    try:
        user_id = UUID(str(user.get("user_id")))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials")

    user_obj = await user_dao.get_by_id(db, user_id)
    if not user_obj:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return UserEnvelope(user=UserRead.model_validate(user_obj, from_attributes=True))
