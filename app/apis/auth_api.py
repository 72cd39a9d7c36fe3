from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.apis.deps import get_db, public_access
from app.configs.settings import settings
from app.cores.rate_limiter import AUTH_RATE_LIMIT, limiter
from app.cores.token import SESSION_COOKIE_NAME, SESSION_TOKEN_EXPIRE_HOURS, verify_session_token
from app.schemas.auths.login_schema import CurrentUserResponse, LoginRequest, MessageResponse, VerifyOtpRequest
from app.schemas.auths.register_shema import SignUpRequest, SignUpResponse
from app.services.auths.login_service import get_current_user, login_user, verify_login_otp
from app.services.auths.register_service import register_user, resend_verification, verify_email
from app.services.validation.exception import ApiError, Unauthenticated

router = APIRouter()


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "samesite": "strict",
        "secure": settings.is_production,
        "path": "/",
    }


"""
Ruta de registro.
    - Crea la cuenta sin verificar ni aprobar y envía el enlace de verificación.
    - Si el correo falla la cuenta queda creada y se responde 500.
"""
@router.post("/sign-up", status_code=status.HTTP_201_CREATED, response_model=SignUpResponse, dependencies=[Depends(public_access)])
@limiter.limit(AUTH_RATE_LIMIT)
async def sign_up_route(request: Request, payload: SignUpRequest, db: AsyncSession = Depends(get_db)):
    new_user = await register_user(db, payload.email, payload.password)
    return {
        "success": True,
        "message": "Sign-up successful",
        "user": {"id": new_user.id, "email": new_user.email},
    }


"""
Ruta que abre el usuario desde el correo. Responde texto plano, no JSON.
"""
@router.get("/verify-email", response_class=PlainTextResponse, dependencies=[Depends(public_access)])
async def verify_email_route(
    token: Optional[str] = None,
    email: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    try:
        await verify_email(db, email, token)
    except ApiError as e:
        return PlainTextResponse(e.detail, status_code=e.status_code)
    return PlainTextResponse("Email verified. Wait for admin approval to be able to login.")


"""
Login paso 1: valida credenciales y estado de la cuenta y envía el OTP por correo.
"""
@router.post("/login", response_model=MessageResponse, dependencies=[Depends(public_access)])
@limiter.limit(AUTH_RATE_LIMIT)
async def login_route(request: Request, payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    await login_user(db, payload.email, payload.password)
    return {"success": True, "message": "OTP sent to your email"}


"""
Login paso 2: valida el OTP y entrega la sesión solo en la cookie `portfolio_token`.
"""
@router.post("/verify-otp", response_model=MessageResponse, dependencies=[Depends(public_access)])
@limiter.limit(AUTH_RATE_LIMIT)
async def verify_otp_route(
    request: Request,
    response: Response,
    payload: VerifyOtpRequest,
    db: AsyncSession = Depends(get_db),
):
    token, _ = await verify_login_otp(db, payload.email, payload.otp)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=SESSION_TOKEN_EXPIRE_HOURS * 60 * 60,
        **_cookie_options(),
    )
    return {"success": True, "message": "Logged in"}


@router.post("/logout", response_model=MessageResponse, dependencies=[Depends(public_access)])
async def logout_route(response: Response):
    response.delete_cookie(SESSION_COOKIE_NAME, **_cookie_options())
    return {"success": True, "message": "Logged out successfully"}


"""
Devuelve la cuenta de la sesión actual. Los flags se leen de la base de datos.
"""
@router.get("/me", response_model=CurrentUserResponse)
async def me_route(request: Request, db: AsyncSession = Depends(get_db)):
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        raise Unauthenticated()

    claims = verify_session_token(token)
    user = await get_current_user(db, claims)
    return {"success": True, "user": user}


@router.post("/resend-verification/{user_id}", response_model=MessageResponse, dependencies=[Depends(public_access)])
@limiter.limit(AUTH_RATE_LIMIT)
async def resend_verification_route(request: Request, user_id: str, db: AsyncSession = Depends(get_db)):
    await resend_verification(db, user_id)
    return {"success": True, "message": "Verification email resent successfully"}
