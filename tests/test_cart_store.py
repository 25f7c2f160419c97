"""
Tests for the cart state manager and its storage backends.
"""
import json
from decimal import Decimal

import pytest

from cart.storage import JSONFileStorage, MemoryStorage
from cart.store import CartStore, LensOptions


def lens(lens_type="single-vision", package="classic", thickness="standard", price="299"):
    return LensOptions(
        lens_type=lens_type,
        lens_package=package,
        prescription_option="later",
        lens_thickness=thickness,
        total_lens_price=Decimal(price),
    )


def add(cart, product_id="p1", quantity=1, variant_id=None, lens_options=None, price="1000"):
    return cart.add_item(
        product_id=product_id,
        name="Round Classic",
        image=None,
        price=Decimal(price),
        quantity=quantity,
        variant_id=variant_id,
        lens_options=lens_options,
    )


@pytest.fixture
def cart():
    return CartStore(MemoryStorage(), key="cart-storage")


class TestMerge:
    """Adding the same configuration twice merges into one line."""

    def test_same_configuration_merges(self, cart):
        add(cart, quantity=1, variant_id="v1", lens_options=lens())
        add(cart, quantity=2, variant_id="v1", lens_options=lens())
        add(cart, quantity=3, variant_id="v1", lens_options=lens())

        assert len(cart) == 1
        assert cart.items[0].quantity == 6

    def test_merge_only_touches_matching_line(self, cart):
        add(cart, product_id="p1", quantity=1)
        add(cart, product_id="p2", quantity=4)
        add(cart, product_id="p1", quantity=2)

        quantities = {line.product_id: line.quantity for line in cart.items}
        assert quantities == {"p1": 3, "p2": 4}

    def test_merge_keeps_existing_price(self, cart):
        add(cart, price="1000")
        add(cart, price="1200")
        assert cart.items[0].price == Decimal("1000")

    def test_returns_the_merged_line(self, cart):
        first = add(cart)
        second = add(cart)
        assert first.id == second.id


class TestNonMerge:
    """Any difference in the merge key gives a separate line."""

    @pytest.mark.parametrize("other", [
        {"product_id": "p2"},
        {"variant_id": "v2"},
        {"lens_options": lens(lens_type="bifocal")},
        {"lens_options": lens(package="blu-cut")},
        {"lens_options": lens(thickness="thin")},
        {"lens_options": None},
    ])
    def test_differing_field_creates_new_line(self, cart, other):
        base = {"product_id": "p1", "variant_id": "v1", "lens_options": lens()}
        add(cart, **base)
        add(cart, **{**base, **other})
        assert len(cart) == 2

    def test_prescription_option_is_not_part_of_the_key(self, cart):
        upload = lens()
        upload.prescription_option = "upload"
        add(cart, lens_options=lens())
        add(cart, lens_options=upload)
        assert len(cart) == 1


class TestQuantity:
    def test_zero_removes_line(self, cart):
        add(cart, quantity=3, variant_id="v1")
        cart.update_quantity("p1", "v1", 0)
        assert cart.items == []

    def test_negative_removes_line(self, cart):
        add(cart, quantity=3)
        cart.update_quantity("p1", None, -2)
        assert len(cart) == 0

    def test_update_sets_quantity(self, cart):
        add(cart, quantity=1)
        cart.update_quantity("p1", None, 5)
        assert cart.items[0].quantity == 5

    def test_non_numeric_quantity_is_ignored(self, cart):
        add(cart, quantity=2)
        cart.update_quantity("p1", None, "lots")
        assert cart.items[0].quantity == 2

    def test_add_never_stores_quantity_below_one(self, cart):
        add(cart, quantity=0)
        add(cart, product_id="p2", quantity=-5)
        assert all(line.quantity >= 1 for line in cart.items)
        assert cart.get_total_items() == 2

    def test_missing_variant_only_matches_lines_without_one(self, cart):
        add(cart, variant_id="v1", quantity=2)
        cart.update_quantity("p1", None, 0)
        assert len(cart) == 1


class TestRemove:
    def test_without_lens_type_removes_every_lens_setup(self, cart):
        add(cart, variant_id="v1", lens_options=lens("single-vision"))
        add(cart, variant_id="v1", lens_options=lens("bifocal"))
        add(cart, variant_id="v1")
        add(cart, product_id="p2")

        cart.remove_item("p1", "v1")

        assert [line.product_id for line in cart.items] == ["p2"]

    def test_with_lens_type_removes_only_that_setup(self, cart):
        add(cart, lens_options=lens("single-vision"))
        add(cart, lens_options=lens("bifocal"))

        cart.remove_item("p1", None, lens_type="bifocal")

        assert len(cart) == 1
        assert cart.items[0].lens_options.lens_type == "single-vision"

    def test_unknown_line_is_a_no_op(self, cart):
        add(cart)
        cart.remove_item("nope")
        assert len(cart) == 1


class TestTotals:
    def test_total_price_and_items(self, cart):
        add(cart, product_id="p1", price="1000", quantity=2, lens_options=lens(price="200"))
        add(cart, product_id="p2", price="500", quantity=1)

        assert cart.get_total_price() == Decimal("2900")
        assert cart.get_total_items() == 3

    def test_empty_cart_totals(self, cart):
        assert cart.get_total_price() == Decimal("0")
        assert cart.get_total_items() == 0


class TestClear:
    def test_clear_twice(self, cart):
        add(cart, quantity=4)
        cart.clear_cart()
        assert cart.items == []
        cart.clear_cart()
        assert cart.items == []
        assert cart.get_total_items() == 0


class TestVisibility:
    def test_open_close_toggle(self, cart):
        assert cart.is_open is False
        cart.open_cart()
        assert cart.is_open is True
        cart.toggle_cart()
        assert cart.is_open is False
        cart.toggle_cart()
        cart.close_cart()
        assert cart.is_open is False


class TestPersistence:
    def test_state_survives_reload(self):
        storage = MemoryStorage()
        cart = CartStore(storage, key="cart-storage")
        add(cart, quantity=2, variant_id="v1", lens_options=lens(price="299"))
        cart.open_cart()

        reloaded = CartStore(storage, key="cart-storage")

        assert len(reloaded) == 1
        line = reloaded.items[0]
        assert line.quantity == 2
        assert line.variant_id == "v1"
        assert line.lens_options == lens(price="299")
        assert reloaded.is_open is True

    def test_unreadable_lines_are_skipped(self):
        storage = MemoryStorage({
            "cart-storage": {
                "items": [
                    {"id": "a", "product_id": "p1", "price": "100", "quantity": 1},
                    {"id": "b", "product_id": "p2", "price": "oops", "quantity": 1},
                    {"id": "c", "product_id": "p3", "price": "100", "quantity": 0},
                    {"product_id": "p4"},
                ],
                "is_open": False,
            }
        })
        cart = CartStore(storage, key="cart-storage")
        assert [line.product_id for line in cart.items] == ["p1"]

    def test_garbage_blob_gives_empty_cart(self):
        cart = CartStore(MemoryStorage({"cart-storage": "not a cart"}), key="cart-storage")
        assert len(cart) == 0

    def test_reset_forgets_stored_state(self):
        storage = MemoryStorage()
        cart = CartStore(storage, key="cart-storage")
        add(cart)
        cart.reset()
        assert storage.load("cart-storage") is None
        assert len(CartStore(storage, key="cart-storage")) == 0

    def test_prices_are_stored_as_strings(self):
        storage = MemoryStorage()
        cart = CartStore(storage, key="cart-storage")
        add(cart, price="1499.50")
        assert storage.load("cart-storage")["items"][0]["price"] == "1499.50"


class TestSubscribe:
    def test_listener_called_on_each_change(self, cart):
        seen = []
        cart.subscribe(lambda store: seen.append(store.get_total_items()))
        add(cart, quantity=2)
        cart.update_quantity("p1", None, 5)
        cart.clear_cart()
        assert seen == [2, 5, 0]

    def test_unsubscribe(self, cart):
        seen = []
        unsubscribe = cart.subscribe(lambda store: seen.append(1))
        unsubscribe()
        add(cart)
        assert seen == []


class TestJSONFileStorage:
    def test_round_trip_through_file(self, tmp_path):
        path = tmp_path / "cart.json"
        cart = CartStore(JSONFileStorage(str(path)), key="cart-storage")
        add(cart, quantity=3)

        again = CartStore(JSONFileStorage(str(path)), key="cart-storage")
        assert again.get_total_items() == 3

    def test_corrupt_file_loads_empty(self, tmp_path):
        path = tmp_path / "cart.json"
        path.write_text("{not json", encoding="utf-8")

        cart = CartStore(JSONFileStorage(str(path)), key="cart-storage")
        assert len(cart) == 0

        add(cart)
        assert json.loads(path.read_text(encoding="utf-8"))["cart-storage"]["items"][0]["product_id"] == "p1"

    def test_keys_are_independent(self, tmp_path):
        storage = JSONFileStorage(str(tmp_path / "cart.json"))
        add(CartStore(storage, key="a"), quantity=1)
        add(CartStore(storage, key="b"), quantity=2)
        storage.delete("a")
        assert storage.load("a") is None
        assert storage.load("b")["items"][0]["quantity"] == 2
