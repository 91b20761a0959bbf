import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime
from signage.db import Base

class ContentItem(Base):
    __tablename__ = "content_item"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False)
    type = Column(String, nullable=False)  # image | video | pdf | webpage
    url = Column(String, nullable=True)
    duration = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
