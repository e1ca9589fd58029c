from datetime import timedelta
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm, OAuth2PasswordBearer
from jose import JWTError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from fyphub.core.config import settings
from fyphub.core.security import create_access_token, decode_access_token
from fyphub.db.session import get_db
from fyphub.models.user import User, UserRole
from fyphub.schemas.token import Token, TokenPayload
from fyphub.schemas.user import User as UserSchema, UserCreate, SessionInfo
from fyphub.services import user as user_service

router = APIRouter()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False)

credentials_exception = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)


async def _resolve_user(db: AsyncSession, token: str) -> Optional[User]:
    try:
        token_data = TokenPayload(**decode_access_token(token))
    except (JWTError, ValidationError):
        return None
    if token_data.sub is None:
        return None
    user = await user_service.get(db, id=token_data.sub)
    if not user or not user.is_active:
        return None
    return user


# Асинхронная зависимость для получения текущего пользователя
async def get_current_user(db: AsyncSession = Depends(get_db), token: str = Depends(oauth2_scheme)) -> User:
    user = await _resolve_user(db, token)
    if user is None:
        raise credentials_exception
    return user


# Пользователь, если передан корректный токен, иначе None
async def get_current_user_optional(
    db: AsyncSession = Depends(get_db), token: Optional[str] = Depends(optional_oauth2_scheme)
) -> Optional[User]:
    if not token:
        return None
    return await _resolve_user(db, token)


@router.post("/login", response_model=Token)
async def login_access_token(
    db: AsyncSession = Depends(get_db), form_data: OAuth2PasswordRequestForm = Depends()
) -> Any:
    """
    OAuth2 совместимый токен, логин для получения access token.
    Принимает username (который может быть email или username) и пароль.
    """
    user = await user_service.authenticate(db, username_or_email=form_data.username, password=form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username/email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    elif not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return {
        "access_token": create_access_token(user.id, expires_delta=access_token_expires),
        "token_type": "bearer",
    }


@router.post("/register", response_model=UserSchema, status_code=status.HTTP_201_CREATED)
async def register(user_in: UserCreate, db: AsyncSession = Depends(get_db)) -> Any:
    """
    Регистрация нового пользователя.
    Роль администратора самостоятельно получить нельзя.
    """
    if user_in.role == UserRole.ADMINISTRATOR:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot self-register as administrator")

    if await user_service.get_by_email(db, email=user_in.email.lower()):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User with this email already exists")

    if not await user_service.is_username_available(db, user_in.username):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username is already taken")

    return await user_service.create(db, obj_in=user_in)


@router.get("/session", response_model=SessionInfo)
async def read_session(current_user: User = Depends(get_current_user)) -> Any:
    """
    Сведения о текущей сессии
    """
    return {
        "user_id": current_user.id,
        "name": current_user.full_name or current_user.username,
        "email": current_user.email,
        "role": current_user.role,
    }
