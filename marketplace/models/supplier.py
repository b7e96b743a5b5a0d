from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text

from marketplace.database.base import Base


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True)
    company_name = Column(String, nullable=False)

    email = Column(String)
    phone = Column(String)
    website = Column(String)
    location = Column(String)
    about_us = Column(Text)
    gallery = Column(JSON, nullable=False, default=list)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


__all__ = ["Supplier"]
