from typing import AsyncGenerator, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.cores.token import SESSION_COOKIE_NAME, SessionClaims, verify_session_token
from app.services.validation.exception import Forbidden, InvalidToken, Unauthenticated

"""
Este archivo define la función `get_db`, que proporciona una sesión de base de datos asincrónica.
La fábrica de sesiones vive en `app.state` (la crea `create_app`), no en un global del módulo.
"""
async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        await session.close()


async def public_access():
    pass


def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    # primero la cookie de sesión, después el header Bearer
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if token:
        return token

    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
        raise InvalidToken()

    return None


async def require_auth(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> SessionClaims:
    token = _extract_token(request, authorization)
    if not token:
        raise Unauthenticated()

    claims = verify_session_token(token)
    request.state.user = claims
    return claims


async def require_admin(claims: Optional[SessionClaims] = Depends(require_auth)) -> SessionClaims:
    if claims is None:
        raise Unauthenticated()
    if not claims.is_admin:
        raise Forbidden()
    return claims
