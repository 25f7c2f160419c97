"""
Tests for the session cart endpoints.
"""
from decimal import Decimal

from django.conf import settings

from products.models import ProductVariant
from tests.conftest import make_product


class TestAddToCart:
    def test_add_uses_database_price(self, anon_client, product):
        resp = anon_client.post_json("/cart/add/", {"product_id": product.id, "quantity": 2, "price": "1"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["message"] == "Added to cart"
        assert data["cart_count"] == 2
        line = data["cart"]["items"][0]
        assert line["price"] == 1000.0
        assert line["image"] == "https://cdn.example.com/round-1.jpg"

    def test_form_post_is_accepted(self, anon_client, product):
        resp = anon_client.post("/cart/add/", {"product_id": product.id, "quantity": "1"})
        assert resp.status_code == 200
        assert resp.json()["cart_count"] == 1

    def test_cart_lives_in_session(self, anon_client, product):
        anon_client.post_json("/cart/add/", {"product_id": product.id})
        blob = anon_client.session[settings.CART_STORAGE_KEY]
        assert blob["items"][0]["product_id"] == str(product.id)
        assert blob["items"][0]["price"] == "1000.00"

    def test_repeat_add_merges(self, anon_client, product):
        anon_client.post_json("/cart/add/", {"product_id": product.id, "quantity": 1})
        data = anon_client.post_json("/cart/add/", {"product_id": product.id, "quantity": 2}).json()
        assert len(data["cart"]["items"]) == 1
        assert data["cart"]["items"][0]["quantity"] == 3

    def test_default_variant_is_chosen(self, anon_client, product, variant):
        ProductVariant.objects.create(product=product, color="Tortoise", color_code="#8B4513", stock=3)
        line = anon_client.post_json("/cart/add/", {"product_id": product.id}).json()["cart"]["items"][0]
        assert line["variantId"] == str(variant.id)
        assert line["color"] == "Black"

    def test_variant_price_override(self, anon_client, product, variant):
        variant.price = Decimal("1299")
        variant.save()
        line = anon_client.post_json(
            "/cart/add/", {"product_id": product.id, "variant_id": variant.id}
        ).json()["cart"]["items"][0]
        assert line["price"] == 1299.0

    def test_variant_of_other_product(self, anon_client, product, category):
        other = make_product(name="Square Bold", category=category)
        wrong = ProductVariant.objects.create(product=other, color="Red", color_code="#FF0000", stock=5)
        resp = anon_client.post_json("/cart/add/", {"product_id": product.id, "variant_id": wrong.id})
        assert resp.status_code == 400

    def test_lens_price_is_computed_server_side(self, anon_client, product):
        resp = anon_client.post_json("/cart/add/", {
            "product_id": product.id,
            "lens_type": "single-vision",
            "lens_package": "blu-cut",
            "lens_thickness": "thin",
            "total_lens_price": "0",
        })
        line = resp.json()["cart"]["items"][0]
        assert line["lensOptions"]["totalLensPrice"] == 697.0
        assert line["lensOptions"]["prescriptionOption"] == "later"
        assert line["unitTotal"] == 1697.0

    def test_lens_package_without_type(self, anon_client, product):
        resp = anon_client.post_json("/cart/add/", {"product_id": product.id, "lens_package": "blu-cut"})
        assert resp.status_code == 400

    def test_upload_needs_prescription_image(self, anon_client, product):
        resp = anon_client.post_json("/cart/add/", {
            "product_id": product.id, "lens_type": "single-vision", "prescription_option": "upload",
        })
        assert resp.status_code == 400

    def test_out_of_stock(self, anon_client, category):
        empty = make_product(name="Sold Out", stock=0, category=category)
        resp = anon_client.post_json("/cart/add/", {"product_id": empty.id})
        assert resp.status_code == 409
        assert resp.json()["error"] == "OUT_OF_STOCK"

    def test_inactive_product(self, anon_client, category):
        hidden = make_product(name="Hidden", is_active=False, category=category)
        assert anon_client.post_json("/cart/add/", {"product_id": hidden.id}).status_code == 404

    def test_quantity_is_capped(self, anon_client, product):
        data = anon_client.post_json("/cart/add/", {"product_id": product.id, "quantity": 50}).json()
        assert data["cart_count"] == settings.MAX_QTY_PER_LINE

        resp = anon_client.post_json("/cart/add/", {"product_id": product.id, "quantity": 1})
        assert resp.status_code == 400
        assert resp.json()["cart_count"] == settings.MAX_QTY_PER_LINE

    def test_quantity_capped_by_stock(self, anon_client, category):
        few = make_product(name="Few Left", stock=2, category=category)
        data = anon_client.post_json("/cart/add/", {"product_id": few.id, "quantity": 5}).json()
        assert data["cart_count"] == 2


class TestCartLines:
    def test_detail_totals_and_shipping(self, anon_client, product):
        anon_client.post_json("/cart/add/", {"product_id": product.id, "quantity": 1})
        cart = anon_client.get("/cart/").json()["cart"]
        assert cart["subtotal"] == 1000.0
        assert cart["shipping"] == 0.0
        assert cart["total"] == 1000.0
        assert cart["totalItems"] == 1

    def test_shipping_below_threshold(self, anon_client, category):
        cheap = make_product(name="Budget Frame", price="499", category=category)
        anon_client.post_json("/cart/add/", {"product_id": cheap.id})
        cart = anon_client.get("/cart/").json()["cart"]
        assert cart["shipping"] == 99.0
        assert cart["total"] == 598.0

    def test_empty_cart_has_no_shipping(self, anon_client, db):
        cart = anon_client.get("/cart/").json()["cart"]
        assert cart["items"] == []
        assert cart["shipping"] == 0.0

    def test_update_quantity(self, anon_client, product):
        anon_client.post_json("/cart/add/", {"product_id": product.id})
        data = anon_client.post_json("/cart/update-qty/", {"product_id": str(product.id), "quantity": 4}).json()
        assert data["cart_count"] == 4

    def test_update_to_zero_removes(self, anon_client, product):
        anon_client.post_json("/cart/add/", {"product_id": product.id})
        data = anon_client.post_json("/cart/update-qty/", {"product_id": str(product.id), "quantity": 0}).json()
        assert data["cart"]["items"] == []

    def test_update_capped_by_stock(self, anon_client, category):
        few = make_product(name="Few Left", stock=3, category=category)
        anon_client.post_json("/cart/add/", {"product_id": few.id})
        data = anon_client.post_json("/cart/update-qty/", {"product_id": str(few.id), "quantity": 8}).json()
        assert data["cart_count"] == 3

    def test_update_capped_by_variant_stock(self, anon_client, product, variant):
        variant.stock = 2
        variant.save()
        anon_client.post_json("/cart/add/", {"product_id": product.id, "variant_id": variant.id})
        data = anon_client.post_json("/cart/update-qty/", {
            "product_id": str(product.id), "variant_id": str(variant.id), "quantity": 6,
        }).json()
        assert data["cart_count"] == 2

    def test_update_after_stock_ran_out(self, anon_client, product):
        anon_client.post_json("/cart/add/", {"product_id": product.id})
        product.stock = 0
        product.save()
        resp = anon_client.post_json("/cart/update-qty/", {"product_id": str(product.id), "quantity": 2})
        assert resp.status_code == 409
        assert resp.json()["error"] == "OUT_OF_STOCK"
        assert anon_client.get("/cart/").json()["cart"]["totalItems"] == 1

    def test_update_requires_quantity(self, anon_client, product):
        resp = anon_client.post_json("/cart/update-qty/", {"product_id": str(product.id)})
        assert resp.status_code == 400

    def test_remove_all_lens_setups(self, anon_client, product):
        anon_client.post_json("/cart/add/", {"product_id": product.id})
        anon_client.post_json("/cart/add/", {"product_id": product.id, "lens_type": "bifocal"})
        data = anon_client.post_json("/cart/remove/", {"product_id": str(product.id)}).json()
        assert data["cart_count"] == 0

    def test_empty(self, anon_client, product):
        anon_client.post_json("/cart/add/", {"product_id": product.id, "quantity": 3})
        assert anon_client.post("/cart/empty/").json()["cart_count"] == 0
        assert anon_client.post("/cart/empty/").json()["cart_count"] == 0

    def test_toggle(self, anon_client, db):
        assert anon_client.post("/cart/toggle/", {"action": "open"}).json()["isOpen"] is True
        assert anon_client.post("/cart/toggle/").json()["isOpen"] is False
        assert anon_client.post("/cart/toggle/", {"action": "close"}).json()["isOpen"] is False

    def test_toggle_accepts_json(self, anon_client, db):
        assert anon_client.post_json("/cart/toggle/", {"action": "open"}).json()["isOpen"] is True
        assert anon_client.post_json("/cart/toggle/", {"action": "open"}).json()["isOpen"] is True
        assert anon_client.post_json("/cart/toggle/", {"action": "close"}).json()["isOpen"] is False

    def test_get_not_allowed_on_add(self, anon_client, db):
        assert anon_client.get("/cart/add/").status_code == 405
