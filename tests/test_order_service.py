import pytest

from shopforge.models.order import OrderStatus, PaymentResult, ShippingAddress
from shopforge.models.user import User
from shopforge.utils.exceptions import (
    EmptyOrderError,
    ForbiddenError,
    InsufficientStockError,
    NotFoundError,
)

SHIPPING = ShippingAddress(address="12 MG Road", city="Pune", postal_code="411001")


def _user(user_id, role="user"):
    return User(_id=user_id, phone="9" * 10, role=role)


def _stock(catalog, product_id):
    return catalog.get_product(product_id, include_inactive=True).inventory.quantity


def test_place_order_decrements_stock_and_clears_cart(orders, carts, catalog, make_product):
    a = make_product(price=100.0, quantity=5)
    b = make_product(price=40.0, quantity=3)
    carts.add_item("u1", a.id, 2)

    order = orders.place_order(
        "u1", [(a.id, 2), (b.id, 1)], SHIPPING, "COD", tax_price=18.0, shipping_price=50.0
    )

    assert order.items_price == 240.0
    assert order.total_price == 308.0
    assert order.status == OrderStatus.PENDING
    assert _stock(catalog, a.id) == 3
    assert _stock(catalog, b.id) == 2
    assert carts.get_or_create_cart("u1").items == []
    assert orders.collection.count_documents({}) == 1


def test_order_prices_come_from_catalog(orders, catalog, make_product):
    product = make_product(price=99.5, quantity=5)
    order = orders.place_order("u1", [(product.id, 2)], SHIPPING, "COD")
    assert order.items[0].price == 99.5
    assert order.items[0].name == product.name


def test_duplicate_lines_are_merged(orders, catalog, make_product):
    product = make_product(quantity=3)

    order = orders.place_order("u1", [(product.id, 1), (product.id, 2)], SHIPPING, "COD")

    assert len(order.items) == 1
    assert order.items[0].quantity == 3
    assert _stock(catalog, product.id) == 0


def test_merged_lines_exceeding_stock_fail(orders, catalog, make_product):
    product = make_product(quantity=2)
    with pytest.raises(InsufficientStockError):
        orders.place_order("u1", [(product.id, 1), (product.id, 2)], SHIPPING, "COD")
    assert _stock(catalog, product.id) == 2


def test_failed_order_restores_all_stock(orders, catalog, make_product):
    a = make_product(quantity=5)
    b = make_product(quantity=5)
    short = make_product(quantity=1, name="Rare item")

    with pytest.raises(InsufficientStockError, match="Rare item") as exc_info:
        orders.place_order("u1", [(a.id, 2), (b.id, 3), (short.id, 2)], SHIPPING, "COD")

    assert exc_info.value.product_id == short.id
    assert _stock(catalog, a.id) == 5
    assert _stock(catalog, b.id) == 5
    assert _stock(catalog, short.id) == 1
    assert orders.collection.count_documents({}) == 0


def test_insert_failure_restocks(orders, catalog, make_product, monkeypatch):
    product = make_product(quantity=4)

    def broken_insert(doc):
        raise RuntimeError("write failed")

    monkeypatch.setattr(orders, "collection", _Proxy(orders.collection, insert_one=broken_insert))
    with pytest.raises(RuntimeError):
        orders.place_order("u1", [(product.id, 3)], SHIPPING, "COD")

    assert _stock(catalog, product.id) == 4


class _Proxy:
    def __init__(self, target, **overrides):
        self._target = target
        self._overrides = overrides

    def __getattr__(self, name):
        return self._overrides.get(name) or getattr(self._target, name)


def test_last_unit_goes_to_one_order(orders, carts, catalog, make_product):
    product = make_product(quantity=1)
    carts.add_item("u1", product.id, 1)
    carts.add_item("u2", product.id, 1)

    first = orders.place_order("u1", [(product.id, 1)], SHIPPING, "COD")
    with pytest.raises(InsufficientStockError):
        orders.place_order("u2", [(product.id, 1)], SHIPPING, "COD")

    assert first.user_id == "u1"
    assert _stock(catalog, product.id) == 0
    assert carts.get_or_create_cart("u2").total_items == 1


def test_untracked_products_not_reserved(orders, catalog, make_product):
    product = make_product(quantity=0, track_quantity=False)
    order = orders.place_order("u1", [(product.id, 10)], SHIPPING, "COD")
    assert order.items[0].quantity == 10
    assert _stock(catalog, product.id) == 0


def test_empty_order(orders):
    with pytest.raises(EmptyOrderError):
        orders.place_order("u1", [], SHIPPING, "COD")


def test_unknown_product(orders, catalog, make_product):
    product = make_product(quantity=2)
    with pytest.raises(NotFoundError):
        orders.place_order("u1", [(product.id, 1), ("missing", 1)], SHIPPING, "COD")
    assert _stock(catalog, product.id) == 2


def test_order_access_rules(orders, make_product):
    product = make_product()
    order = orders.place_order("u1", [(product.id, 1)], SHIPPING, "COD")

    assert orders.get_order(order.id, _user("u1")).id == order.id
    assert orders.get_order(order.id, _user("admin", role="admin")).id == order.id
    with pytest.raises(ForbiddenError):
        orders.get_order(order.id, _user("u2"))
    with pytest.raises(NotFoundError):
        orders.get_order("missing", _user("u1"))


def test_mark_paid_and_deliver(orders, make_product, clock):
    product = make_product()
    order = orders.place_order("u1", [(product.id, 1)], SHIPPING, "Card")

    with pytest.raises(ForbiddenError):
        orders.mark_paid(order.id, _user("u2"))

    paid = orders.mark_paid(order.id, _user("u1"), PaymentResult(id="pay_1", status="COMPLETED"))
    assert paid.is_paid is True
    assert paid.paid_at == clock.now()
    assert paid.payment_result.id == "pay_1"
    assert paid.status == OrderStatus.PROCESSING

    shipped = orders.update_status(order.id, OrderStatus.SHIPPED, tracking_number="TRK1")
    assert shipped.tracking_number == "TRK1"
    assert shipped.is_delivered is False

    delivered = orders.update_status(order.id, OrderStatus.DELIVERED)
    assert delivered.is_delivered is True
    assert delivered.delivered_at == clock.now()


def test_list_my_orders_paginates_newest_first(orders, make_product, clock):
    product = make_product(quantity=10)
    ids = []
    for _ in range(3):
        ids.append(orders.place_order("u1", [(product.id, 1)], SHIPPING, "COD").id)
        clock.advance(60)
    orders.place_order("u2", [(product.id, 1)], SHIPPING, "COD")

    page = orders.list_my_orders("u1", page=1, limit=2)
    assert page["total"] == 3
    assert page["pages"] == 2
    assert [o.id for o in page["orders"]] == [ids[2], ids[1]]

    assert orders.list_all_orders()["total"] == 4


def test_concurrent_orders_sell_last_unit_once(orders, catalog, make_product):
    import threading

    product = make_product(quantity=1)
    barrier = threading.Barrier(8)
    results = []
    lock = threading.Lock()

    def buy(user_id):
        barrier.wait()
        try:
            orders.place_order(user_id, [(product.id, 1)], SHIPPING, "COD")
            outcome = "ok"
        except InsufficientStockError:
            outcome = "short"
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=buy, args=(f"u{i}",)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert results.count("ok") == 1
    assert results.count("short") == 7
    assert _stock(catalog, product.id) == 0
    assert orders.collection.count_documents({}) == 1
