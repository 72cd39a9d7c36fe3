from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from app.configs.settings import settings


def get_client_ip(request: Request) -> str:
    """
    Obtiene la IP del cliente desde el request.
    Considera proxies y headers de forwarding.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return "unknown"


# Límite para rutas de autenticación (login, OTP, registro)
AUTH_RATE_LIMIT = "10/minute"

limiter = Limiter(
    key_func=get_client_ip,
    storage_uri="memory://",
    headers_enabled=False,
    enabled=settings.RATE_LIMIT_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Devuelve el 429 en el mismo formato JSON que el resto de errores de la API.
    """
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "message": "Too many requests. Please try again later.",
            "detail": f"Rate limit exceeded: {exc.detail}",
        },
    )
