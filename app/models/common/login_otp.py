from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from app.cores.db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LoginOtp(Base):
    __tablename__ = "login_otps"

    id = Column(Integer, primary_key=True, index=True)
    # no es FK: se busca por valor
    email = Column(String(255), index=True, nullable=False)
    otp_hash = Column(String(255), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    attempts = Column(Integer, nullable=False, default=0, server_default="0")
    # marca con microsegundos: el OTP vigente es el más reciente
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self):
        return f"<LoginOtp(email={self.email}, attempts={self.attempts}, expires_at={self.expires_at})>"
