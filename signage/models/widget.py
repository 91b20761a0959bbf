import uuid
from sqlalchemy import Boolean, Column, String, Text
from signage.db import Base


class Widget(Base):
    __tablename__ = "widget"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    type = Column(String(16), nullable=False)  # clock | weather | news | text
    name = Column(String, nullable=False)
    is_enabled = Column(Boolean, nullable=False, default=True)
    position = Column(String(16), default="top-right")
    settings = Column(Text, nullable=True)
