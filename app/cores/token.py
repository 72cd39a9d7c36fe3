from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.configs.settings import settings
from app.services.validation.exception import InvalidToken

ALGORITHM = "HS256"
SESSION_TOKEN_EXPIRE_HOURS = 24
SESSION_COOKIE_NAME = "portfolio_token"


class SessionClaims(BaseModel):
    """
    Estructura fija del payload del token de sesión; cualquier otra forma se rechaza.
    En el token las claves viajan como `userId`, `email` e `isAdmin`.
    """

    model_config = ConfigDict(extra="forbid")

    user_id: int = Field(alias="userId")
    email: str
    is_admin: bool = Field(alias="isAdmin")
    iat: int
    exp: int


def issue_session_token(
    user_id: int,
    email: str,
    is_admin: bool,
    now: Optional[datetime] = None,
    secret_key: Optional[str] = None,
) -> str:
    """
    Firma un JWT de sesión con expiración fija de 24 horas desde su emisión.
    """
    issued_at = now or datetime.now(timezone.utc)
    claims = SessionClaims(
        userId=user_id,
        email=email,
        isAdmin=is_admin,
        iat=int(issued_at.timestamp()),
        exp=int((issued_at + timedelta(hours=SESSION_TOKEN_EXPIRE_HOURS)).timestamp()),
    )
    return jwt.encode(claims.model_dump(by_alias=True), secret_key or settings.SECRET_KEY, algorithm=ALGORITHM)


def verify_session_token(
    token: str,
    now: Optional[datetime] = None,
    secret_key: Optional[str] = None,
) -> SessionClaims:
    """
    Verifica firma, forma del payload y expiración.
    Lanza InvalidToken ante cualquier fallo; el token expira exactamente en `exp`.
    """
    try:
        # la expiración se comprueba abajo contra `now` para poder inyectar el reloj
        payload = jwt.decode(
            token,
            secret_key or settings.SECRET_KEY,
            algorithms=[ALGORITHM],
            options={"verify_exp": False, "verify_iat": False},
        )
        claims = SessionClaims.model_validate(payload)
    except (JWTError, ValidationError):
        raise InvalidToken()

    current = now or datetime.now(timezone.utc)
    if int(current.timestamp()) >= claims.exp:
        raise InvalidToken()

    return claims
