from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from .database import Base


class Slot(Base):
    __tablename__ = "slots"
    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
