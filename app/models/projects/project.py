from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text

from app.cores.db import Base


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey("profile.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    tools = Column(JSON, nullable=False, default=list)
    description = Column(Text, nullable=False)

    image_url = Column(String(500), nullable=True)
    image_public_id = Column(String(255), nullable=True)
    video_url = Column(String(500), nullable=True)
    video_public_id = Column(String(255), nullable=True)

    live_link = Column(String(500), nullable=True)
    github_url = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Project(id={self.id}, name={self.name})>"
