import uuid
from sqlalchemy import Column, String, Integer, Text, ForeignKey
from signage.db import Base

class Playlist(Base):
    __tablename__ = "playlist"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    layout = Column(String(32), nullable=False, default="single_zone")
    custom_layout_config = Column(Text, nullable=True)  # JSON: {"zones": [{"id", "x", "y", "width", "height"}]}
    zone_settings = Column(Text, nullable=True)  # JSON: {"<zone>": {"objectFit": "cover"}}

class PlaylistItem(Base):
    __tablename__ = "playlist_item"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    playlist_id = Column(String(36), ForeignKey("playlist.id"), nullable=False)
    content_item_id = Column(String(36), ForeignKey("content_item.id"), nullable=False)
    order = Column(Integer, nullable=False)
    zone = Column(String(50), nullable=False, default="main")
    custom_duration = Column(Integer, nullable=True)
