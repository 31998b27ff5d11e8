"""Seed a demo franchise with a medicine catalog and opening stock.

Usage: python seed_inventory.py
"""
from datetime import date, timedelta
from decimal import Decimal

from app.db.init_db import init_db
from app.db.session import SessionLocal
from app.models.franchise import Franchise
from app.models.product import Product
from app.services import inventory_service

MEDICINES = [
    # name, category, manufacturer, packing, mrp, gst, units, prescription
    ("Paracetamol 500mg", "Analgesic", "Micro Labs", "10 tablets", "25.00", "12", 200, False),
    ("Dolo 650", "Analgesic", "Micro Labs", "15 tablets", "32.00", "12", 180, False),
    ("Azithromycin 500mg", "Antibiotic", "Cipla", "3 tablets", "120.00", "12", 80, True),
    ("Amoxicillin 500mg", "Antibiotic", "Alkem", "10 capsules", "95.00", "12", 100, True),
    ("Cetirizine 10mg", "Antihistamine", "Dr. Reddy's", "10 tablets", "18.00", "12", 250, False),
    ("Pantoprazole 40mg", "Antacid", "Alkem", "15 tablets", "150.00", "12", 120, False),
    ("Metformin 500mg", "Antidiabetic", "USV", "20 tablets", "45.00", "5", 8, True),
    ("ORS Powder", "Rehydration", "FDC", "21 g sachet", "21.00", "5", 300, False),
    ("Vitamin C 500mg", "Supplement", "Abbott", "15 tablets", "30.00", "18", 5, False),
]


def seed_inventory():
    init_db()
    db = SessionLocal()
    try:
        franchise = db.query(Franchise).first()
        if not franchise:
            franchise = Franchise(
                name="Demo Pharmacy - Main Branch",
                address="12 MG Road, Bengaluru",
                contact_number="+91-80-4000-0000",
                email="main@demo-pharmacy.in",
            )
            db.add(franchise)
            db.commit()
            db.refresh(franchise)
            print(f"[OK] Created franchise: {franchise.name} (ID: {franchise.id})")

        added = 0
        for name, category, manufacturer, packing, mrp, gst, units, rx in MEDICINES:
            product = db.query(Product).filter(Product.name == name).first()
            if not product:
                product = Product(
                    name=name,
                    category=category,
                    manufacturer=manufacturer,
                    packing=packing,
                    mrp=Decimal(mrp),
                    gst=Decimal(gst),
                    expiry_date=date.today() + timedelta(days=540),
                    prescription_required=rx,
                    supplier=manufacturer,
                )
                db.add(product)
                db.flush()
                added += 1
            inventory_service.set_stock(db, franchise.id, product.pr_code, units)
        db.commit()

        print(f"[OK] Seeded {added} new product(s); stock set for {len(MEDICINES)} in {franchise.name}")
    except Exception as e:
        db.rollback()
        print(f"[ERROR] Seeding failed: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_inventory()
