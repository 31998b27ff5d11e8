"""Per-franchise stock ledger."""
import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.models import Inventory, Product
from app.services import inventory_service


def test_upsert_keeps_one_row_with_latest_quantity(db, make_franchise, make_product):
    franchise_id = make_franchise()
    product_id = make_product()

    inventory_service.update_inventory(db, franchise_id, product_id, 40)
    row = inventory_service.update_inventory(db, franchise_id, product_id, 25)

    rows = db.query(Inventory).filter_by(franchise_id=franchise_id, product_id=product_id).all()
    assert len(rows) == 1
    assert rows[0].id == row.id
    assert row.stock_quantity == 25
    assert db.get(Product, product_id).stock_quantity == 25


def test_product_total_sums_every_franchise(db, make_franchise, make_product):
    north, south = make_franchise(), make_franchise()
    product_id = make_product()

    inventory_service.update_inventory(db, north, product_id, 12)
    inventory_service.update_inventory(db, south, product_id, 30)
    inventory_service.update_inventory(db, north, product_id, 2)

    db.expire_all()
    assert db.get(Product, product_id).stock_quantity == 32


def test_negative_quantity_is_rejected(db, make_franchise, make_product):
    with pytest.raises(ValidationError):
        inventory_service.update_inventory(db, make_franchise(), make_product(), -1)


def test_unknown_franchise_or_product(db, make_franchise, make_product):
    franchise_id = make_franchise()
    product_id = make_product()

    with pytest.raises(NotFoundError):
        inventory_service.update_inventory(db, franchise_id + 50, product_id, 5)
    with pytest.raises(NotFoundError):
        inventory_service.update_inventory(db, franchise_id, product_id + 50, 5)


def test_increment_creates_missing_row(db, make_franchise, make_product):
    franchise_id = make_franchise()
    product_id = make_product()

    inventory_service.increment_stock(db, franchise_id, product_id, 3)
    db.commit()

    assert inventory_service.get_stock(db, franchise_id, product_id) == 3
    assert db.get(Product, product_id).stock_quantity == 3


def test_low_stock_uses_each_products_threshold(db, make_franchise, make_product):
    franchise_id = make_franchise()
    other = make_franchise()
    make_product(franchise_id, stock=9, name="Metformin 500mg", low_stock_threshold=10)
    make_product(franchise_id, stock=10, name="Cetirizine 10mg", low_stock_threshold=10)
    make_product(franchise_id, stock=4, name="Vitamin C", low_stock_threshold=3)
    make_product(franchise_id, stock=1, name="Insulin Pen", low_stock_threshold=5)
    make_product(other, stock=0, name="ORS Powder")

    rows = inventory_service.list_low_stock(db, franchise_id)

    assert [r["product_name"] for r in rows] == ["Insulin Pen", "Metformin 500mg", "Cetirizine 10mg"]
    assert len(inventory_service.list_low_stock(db)) == 4
    assert len(inventory_service.list_low_stock(db, limit=2)) == 2
