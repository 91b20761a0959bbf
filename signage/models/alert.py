import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from signage.db import Base


class Alert(Base):
    __tablename__ = "alert"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    message = Column(Text, nullable=False)
    background_color = Column(String(16), default="#ef4444")
    text_color = Column(String(16), default="#ffffff")
    duration = Column(Integer, nullable=False, default=30)  # 0 = manual dismiss only
    is_fixed = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=False)
    alert_type = Column(String(16), default="banner")
    position = Column(String(16), default="top")
    target_screens = Column(String, nullable=True)  # CSV of screen ids, empty = all
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
