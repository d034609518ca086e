from sqlalchemy import Column, String, Text, DateTime, func

from .database import Base


class StoredValue(Base):
    __tablename__ = "stored_values"
    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)  # JSON document
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
