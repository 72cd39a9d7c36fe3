from typing import Optional

from pydantic import BaseModel, ConfigDict

"""
Modelos de entrada y salida de las apis de registro y verificación de email.
Los campos son opcionales para poder responder "Email and password required" con 400.
"""
class SignUpRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class SignUpUserData(BaseModel):
    id: int
    email: str

    model_config = ConfigDict(from_attributes=True)


class SignUpResponse(BaseModel):
    success: bool
    message: str
    user: SignUpUserData
