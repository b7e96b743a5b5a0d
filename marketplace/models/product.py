from datetime import datetime, timezone

from sqlalchemy import JSON, Column, Date, DateTime, Float, ForeignKey, Index, Integer, String

from marketplace.core.constants import DEFAULT_CATEGORY
from marketplace.database.base import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False)

    name = Column(String, nullable=False)
    category = Column(String, nullable=False, default=DEFAULT_CATEGORY)
    technology = Column(String)
    type = Column(String)

    power_kw = Column(Float)
    # Free text such as "1 MWp"; the numeric part is extracted at query time.
    min_order = Column(String)
    qty_mw = Column(Float)
    availability_days = Column(Integer)
    stock_location = Column(String)
    validity = Column(Date)

    datasheet = Column(String)
    panfile = Column(String)
    ondfile = Column(String)

    price_ex_factory = Column(Float)
    attributes = Column(JSON, nullable=False, default=dict)
    row_order = Column(Integer, nullable=False, default=0)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_products_supplier_order", "supplier_id", "row_order"),
        Index("idx_products_category", "category"),
    )


__all__ = ["Product"]
