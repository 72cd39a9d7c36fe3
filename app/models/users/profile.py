from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text, func

from app.cores.db import Base


class Profile(Base):
    __tablename__ = "profile"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    gmail = Column(String(255), nullable=False)
    about = Column(Text, nullable=False)

    profile_picture_url = Column(String(500), nullable=True)
    profile_picture_public_id = Column(String(255), nullable=True)
    pdf_url = Column(String(500), nullable=True)
    pdf_public_id = Column(String(255), nullable=True)

    tech_stack = Column(JSON, nullable=False, default=list)
    skills = Column(JSON, nullable=False, default=list)
    roles = Column(JSON, nullable=False, default=list)
    urls = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Profile(id={self.id}, user_id={self.user_id}, name={self.name})>"
