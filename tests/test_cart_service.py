import pytest

from shopforge.utils.exceptions import InsufficientStockError, InvalidInputError, NotFoundError

USER = "user-1"


def test_get_or_create_is_idempotent(carts):
    first = carts.get_or_create_cart(USER)
    second = carts.get_or_create_cart(USER)
    assert first.id == second.id
    assert first.items == []
    assert carts.collection.count_documents({"user_id": USER}) == 1


def test_add_same_product_twice_merges(carts, make_product):
    product = make_product(price=250.0, quantity=10)

    carts.add_item(USER, product.id, 2)
    cart = carts.add_item(USER, product.id, 3)

    assert len(cart.items) == 1
    assert cart.items[0].quantity == 5
    assert cart.items[0].price == 250.0
    assert cart.total_price == 1250.0


def test_add_creates_cart_lazily(carts, make_product):
    product = make_product()
    cart = carts.add_item("fresh-user", product.id, 1)
    assert cart.user_id == "fresh-user"
    assert cart.total_items == 1


def test_add_unknown_product(carts):
    with pytest.raises(NotFoundError):
        carts.add_item(USER, "missing", 1)


def test_add_more_than_stock(carts, make_product):
    product = make_product(quantity=2)
    with pytest.raises(InsufficientStockError):
        carts.add_item(USER, product.id, 3)


def test_untracked_product_ignores_stock(carts, make_product):
    product = make_product(quantity=0, track_quantity=False)
    cart = carts.add_item(USER, product.id, 50)
    assert cart.items[0].quantity == 50


def test_add_rejects_zero_quantity(carts, make_product):
    product = make_product()
    with pytest.raises(InvalidInputError):
        carts.add_item(USER, product.id, 0)


def test_update_item(carts, make_product):
    product = make_product()
    carts.add_item(USER, product.id, 1)

    cart = carts.update_item(USER, product.id, 4)
    assert cart.items[0].quantity == 4

    with pytest.raises(InvalidInputError):
        carts.update_item(USER, product.id, 0)


def test_update_missing_cart_or_line(carts, make_product):
    product = make_product()
    with pytest.raises(NotFoundError, match="Cart not found"):
        carts.update_item(USER, product.id, 1)

    carts.get_or_create_cart(USER)
    with pytest.raises(NotFoundError, match="Item not found"):
        carts.update_item(USER, product.id, 1)


def test_remove_and_clear(carts, make_product):
    a = make_product()
    b = make_product()
    carts.add_item(USER, a.id, 1)
    carts.add_item(USER, b.id, 2)

    cart = carts.remove_item(USER, a.id)
    assert [line.product_id for line in cart.items] == [b.id]

    with pytest.raises(NotFoundError):
        carts.remove_item(USER, a.id)

    cart = carts.clear_cart(USER)
    assert cart.items == []
    assert carts.collection.count_documents({"user_id": USER}) == 1


def test_clear_missing_cart(carts):
    with pytest.raises(NotFoundError):
        carts.clear_cart("nobody")
    assert carts.clear_cart("nobody", missing_ok=True) is None
