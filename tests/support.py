from datetime import datetime, timedelta, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from marketplace.database import Base, configure_sqlite_engine
from marketplace.models import LocationPrice, Product, Supplier, import_all_models

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite_engine(engine, in_memory=True)
    import_all_models()
    Base.metadata.create_all(bind=engine)
    return engine, sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def add_supplier(db, supplier_id, company_name, **fields):
    supplier = Supplier(id=supplier_id, company_name=company_name, **fields)
    db.add(supplier)
    db.commit()
    return supplier


def add_product(db, supplier_id, name, *, locations=(), created_offset=0, **fields):
    """Insert a product with optional ``(state, city, price)`` location rows.

    ``created_offset`` shifts ``created_at`` in minutes so "newest" ordering is
    deterministic.
    """
    fields.setdefault("category", "module")
    product = Product(
        supplier_id=supplier_id,
        name=name,
        created_at=_EPOCH + timedelta(minutes=created_offset),
        **fields,
    )
    db.add(product)
    db.flush()
    for state, city, price in locations:
        db.add(LocationPrice(product_id=product.id, state=state, city=city, price=price))
    db.commit()
    return product
