from typing import Dict, Optional

from fastapi import HTTPException, status


class ApiError(HTTPException):
    """
    Error base de la API. Cada subclase representa un tipo de fallo con su
    código HTTP y un mensaje por defecto; el mensaje puede sobreescribirse.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind: str = "Internal"
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(
            status_code=self.status_code,
            detail=message or self.message,
            headers=headers,
        )


class BadRequest(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "BadRequest"
    message = "Bad request"


class Conflict(ApiError):
    status_code = status.HTTP_409_CONFLICT
    kind = "Conflict"
    message = "User already exists"


class Unauthenticated(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "Unauthenticated"
    message = "Not authenticated"


class InvalidCredentials(Unauthenticated):
    kind = "InvalidCredentials"
    message = "Invalid credentials"


class InvalidToken(Unauthenticated):
    kind = "InvalidToken"
    message = "Invalid or expired token"


class InvalidCode(Unauthenticated):
    kind = "InvalidCode"
    message = "Invalid OTP"


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    kind = "Forbidden"
    message = "Forbidden: Admin access required"


class EmailNotVerified(Forbidden):
    kind = "EmailNotVerified"
    message = "Email not verified. Please verify your email before logging in."


class ApprovalPending(Forbidden):
    kind = "ApprovalPending"
    message = "Admin approval pending. Please wait for approval before logging in."


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "NotFound"
    message = "Not found"


class OtpNotFound(NotFound):
    # el cliente debe pedir un OTP nuevo, no es un recurso inexistente
    status_code = status.HTTP_400_BAD_REQUEST
    message = "No OTP found. Please request a new OTP."


class PreconditionFailed(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "PreconditionFailed"
    message = "Precondition failed"


class Expired(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "Expired"
    message = "OTP expired. Request a new one."


class AttemptsExceeded(ApiError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    kind = "AttemptsExceeded"
    message = "Too many attempts. Request new OTP."


class AlreadyVerified(BadRequest):
    kind = "AlreadyVerified"
    message = "Email already verified"


class InvalidOrExpiredLink(BadRequest):
    kind = "InvalidOrExpiredLink"
    message = "Invalid or expired verification link"


class EmailDeliveryFailed(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "EmailDeliveryFailed"
    message = "Failed to send email"


class Unavailable(ApiError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    kind = "Unavailable"
    message = "Service temporarily unavailable. Please try again later."


class Internal(ApiError):
    kind = "Internal"


class MediaUploadFailed(ApiError):
    status_code = status.HTTP_502_BAD_GATEWAY
    kind = "MediaUploadFailed"
    message = "Media upload failed"
