from sqlalchemy import Column, Float, ForeignKey, Index, Integer, String, UniqueConstraint

from marketplace.database.base import Base


class LocationPrice(Base):
    __tablename__ = "product_pricing"

    id = Column(Integer, primary_key=True)
    product_id = Column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )

    state = Column(String, nullable=False)
    city = Column(String, nullable=False)
    price = Column(Float, nullable=False)

    __table_args__ = (
        UniqueConstraint("product_id", "state", "city", name="uq_product_pricing_location"),
        Index("idx_product_pricing_product", "product_id"),
    )


__all__ = ["LocationPrice"]
