import uuid
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String
from signage.db import Base


class Screen(Base):
    __tablename__ = "screen"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    playlist_id = Column(String(36), ForeignKey("playlist.id"), nullable=True)
    auth_token = Column(String(64), nullable=True, unique=True)
    is_online = Column(Boolean, nullable=False, default=False)
    last_seen = Column(DateTime, nullable=True)
