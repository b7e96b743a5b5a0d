import argparse
import sys
from datetime import date, timedelta
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from sqlalchemy import delete, select

from marketplace.core.logging import setup_logging
from marketplace.database import Base, SessionLocal, engine
from marketplace.models import LocationPrice, Product, Supplier, import_all_models


def parse_args():
    parser = argparse.ArgumentParser(description="Seed sample suppliers and catalog data.")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Clear existing data before seeding.",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()

    import_all_models()
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        if args.reset:
            db.execute(delete(LocationPrice))
            db.execute(delete(Product))
            db.execute(delete(Supplier))
            db.commit()

        has_supplier = db.execute(select(Supplier.id).limit(1)).first()
        if has_supplier:
            print("Seed skipped: suppliers already exist.")
            return

        suppliers = [
            Supplier(
                id=1,
                company_name="Suryodaya Solar Pvt Ltd",
                email="sales@suryodaya.example",
                phone="+91 22 4000 1000",
                website="https://suryodaya.example",
                location="Ahmedabad, Gujarat",
                about_us="Tier-1 module manufacturer with 2 GW annual capacity.",
                gallery=[],
            ),
            Supplier(
                id=2,
                company_name="GridWave Inverters",
                email="hello@gridwave.example",
                phone="+91 80 4100 2000",
                website="https://gridwave.example",
                location="Bengaluru, Karnataka",
                about_us="String and central inverters for utility-scale plants.",
                gallery=[],
            ),
        ]
        db.add_all(suppliers)
        db.flush()

        validity = date.today() + timedelta(days=30)
        products = [
            Product(
                supplier_id=1,
                name="Mono PERC 540 Wp",
                category="module",
                technology="Monocrystalline",
                type="p-Type",
                power_kw=540,
                min_order="1 MWp",
                qty_mw=25,
                availability_days=15,
                validity=validity,
                price_ex_factory=14.2,
                attributes={"efficiency": "21.1%"},
                row_order=1,
            ),
            Product(
                supplier_id=1,
                name="TOPCon Bifacial 580 Wp",
                category="module",
                technology="TopCon",
                type="n-Type",
                power_kw=580,
                min_order="0.5 MWp",
                qty_mw=10,
                availability_days=30,
                validity=validity,
                price_ex_factory=None,
                attributes={"bifaciality": "80%"},
                row_order=2,
            ),
            Product(
                supplier_id=2,
                name="GW-350 String Inverter",
                category="inverter",
                technology="String",
                power_kw=350,
                min_order="2 MW",
                qty_mw=50,
                availability_days=45,
                validity=validity,
                price_ex_factory=2.1,
                attributes={"price_ex_10mw": 1.95},
                row_order=1,
            ),
        ]
        db.add_all(products)
        db.flush()

        db.add_all(
            [
                LocationPrice(product_id=products[0].id, state="Gujarat", city="Ahmedabad", price=13.9),
                LocationPrice(product_id=products[0].id, state="Rajasthan", city="Jodhpur", price=14.6),
                LocationPrice(product_id=products[1].id, state="Maharashtra", city="Pune", price=16.4),
            ]
        )
        db.commit()
        print("Seed data created.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
