"""Dashboard statistics."""
from app.schemas.order import OrderHeaderCreate, OrderItemCreate
from app.services import order_service
from app.services.dashboard_service import get_dashboard_stats


def test_empty_store_reports_zeros(db):
    assert get_dashboard_stats(db) == {
        "total_orders": 0,
        "revenue": 0.0,
        "customers": 0,
        "low_stock_items": 0,
    }


def test_stats_scoped_to_franchise(db, make_franchise, make_customer, make_product):
    main = make_franchise()
    annex = make_franchise()
    customer = make_customer(main)
    make_customer(annex, first_name="Ravi")
    product = make_product(main, stock=12, mrp="100.00", gst="12")
    make_product(annex, stock=2, name="Insulin Pen")

    header = OrderHeaderCreate(franchise_id=main, customer_id=customer)
    order_service.create_order(db, header, [OrderItemCreate(product_id=product, quantity=1)])
    cancelled = order_service.create_order(db, header, [OrderItemCreate(product_id=product, quantity=1)])
    order_service.update_order_status(db, cancelled.id, "cancelled")
    order_service.create_order(db, header, [OrderItemCreate(product_id=product, quantity=2)])

    stats = get_dashboard_stats(db, main)

    assert stats["total_orders"] == 3
    assert stats["revenue"] == 448.0  # 112 + 112 + 224, the cancelled order still counts
    assert stats["customers"] == 1
    assert stats["low_stock_items"] == 1  # 12 - 1 - 2 = 9 <= 10

    everything = get_dashboard_stats(db)
    assert everything["customers"] == 2
    assert everything["low_stock_items"] == 2


def test_revenue_counts_every_order_including_cancelled(db, make_franchise, make_customer, make_product):
    franchise_id = make_franchise()
    customer = make_customer(franchise_id)
    product = make_product(franchise_id, stock=10, mrp="100.00", gst="0")

    header = OrderHeaderCreate(franchise_id=franchise_id, customer_id=customer)
    order_service.create_order(db, header, [OrderItemCreate(product_id=product, quantity=1)])
    larger = order_service.create_order(db, header, [OrderItemCreate(product_id=product, quantity=2)])
    order_service.update_order_status(db, larger.id, "cancelled")

    stats = get_dashboard_stats(db, franchise_id)

    assert stats["total_orders"] == 2
    assert stats["revenue"] == 300.0
