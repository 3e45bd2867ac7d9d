"""SQLAlchemy model for the ad_spaces catalog table.

Only the columns the traffic enrichment pipeline reads or writes are mapped.
The catalog subsystem owns the rest of the row.
"""
from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, DateTime, Float, JSON, String

from adspace_backend.database import Base


class AdSpace(Base):
    __tablename__ = "ad_spaces"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    title = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    traffic_data = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
