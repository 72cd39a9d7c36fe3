import hashlib
import secrets

from passlib.context import CryptContext

""" 
Contexto de hashing BCrypt con factor de trabajo fijo.
Se usa para contraseñas y también para los códigos OTP: son cortos y fáciles de
adivinar por fuerza bruta, así que se guardan con hash lento.
"""
pwd_context = CryptContext(
    schemes=["bcrypt"], 
    deprecated="auto",
    bcrypt__default_rounds=12  
)

VERIFICATION_TOKEN_BYTES = 32


def get_password_hash(password: str) -> str:
    """Genera hash BCrypt salado"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifica texto plano contra hash almacenado"""
    return pwd_context.verify(plain_password, hashed_password)


def generate_opaque_secret(byte_length: int = VERIFICATION_TOKEN_BYTES) -> str:
    """Bytes aleatorios criptográficamente seguros, en hexadecimal."""
    return secrets.token_hex(byte_length)


def hash_secret(secret: str) -> str:
    """
    Digest sha256 determinista. Solo para tokens de verificación de email,
    que tienen alta entropía; el texto plano nunca se guarda.
    """
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def generate_numeric_code() -> str:
    """Código de 6 dígitos uniforme en [100000, 999999]."""
    return str(100000 + secrets.randbelow(900000))
