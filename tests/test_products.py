"""
Tests for the catalogue, reviews and product admin endpoints.
"""
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError

from category.models import Category
from orders.models import Order, OrderItem, OrderStatus
from products.constants import lens_price
from products.models import Product, ProductVariant, Review
from tests.conftest import make_product


class TestProductModel:
    def test_slug_is_deduplicated(self, db):
        first = make_product(name="Round Classic", sku="A1")
        second = make_product(name="Round Classic", sku="A2")
        assert first.slug == "round-classic"
        assert second.slug == "round-classic-1"

    def test_compare_price_must_exceed_price(self, db):
        with pytest.raises(ValidationError):
            make_product(name="Bad Sale", price="1000", compare_price=Decimal("900"))

    def test_discount_percent(self, db):
        p = make_product(name="On Sale", price="750", compare_price=Decimal("1000"))
        assert p.get_discount_percent() == 25

    def test_variant_price_falls_back(self, product, variant):
        assert variant.effective_price() == product.price
        variant.price = Decimal("1199")
        assert variant.effective_price() == Decimal("1199")

    def test_lens_price(self):
        assert lens_price("zero-power", "classic", "standard") == Decimal("0")
        assert lens_price("bifocal", "polarized", "thin") == Decimal("1197")
        assert lens_price("made-up", None, "standard") == Decimal("0")


class TestCatalogue:
    @pytest.fixture
    def catalogue(self, category):
        sun = Category.objects.create(name="Sunglasses")
        return {
            "round": make_product(name="Round Classic", price="1200", category=category, gender="MEN"),
            "aviator": make_product(name="Aviator Gold", price="2500", category=sun, shape="AVIATOR",
                                    compare_price=Decimal("3000"), is_featured=True),
            "cat": make_product(name="Cat Eye Rose", price="900", category=category, shape="CAT_EYE",
                                material="ACETATE", gender="WOMEN"),
            "hidden": make_product(name="Hidden Frame", price="100", is_active=False),
        }

    def names(self, resp):
        return [p["name"] for p in resp.json()["products"]]

    def test_only_active_listed(self, anon_client, catalogue):
        data = anon_client.get("/products/").json()
        assert data["pagination"]["total"] == 3
        assert "Hidden Frame" not in self.names(anon_client.get("/products/"))

    def test_filters(self, anon_client, catalogue):
        assert self.names(anon_client.get("/products/", {"category": "sunglasses"})) == ["Aviator Gold"]
        assert self.names(anon_client.get("/products/", {"gender": "women"})) == ["Cat Eye Rose"]
        assert self.names(anon_client.get("/products/", {"shape": "aviator"})) == ["Aviator Gold"]
        assert self.names(anon_client.get("/products/", {"material": "acetate"})) == ["Cat Eye Rose"]
        assert self.names(anon_client.get("/products/", {"featured": "true"})) == ["Aviator Gold"]
        assert self.names(anon_client.get("/products/", {"sale": "true"})) == ["Aviator Gold"]
        assert self.names(anon_client.get("/products/", {"search": "round"})) == ["Round Classic"]

    def test_price_window_and_sort(self, anon_client, catalogue):
        resp = anon_client.get("/products/", {"minPrice": "1000", "maxPrice": "3000", "sort": "price_asc"})
        assert self.names(resp) == ["Round Classic", "Aviator Gold"]
        assert self.names(anon_client.get("/products/", {"sort": "price_desc"}))[0] == "Aviator Gold"

    def test_rating_sort(self, anon_client, catalogue, user, other_user):
        Review.objects.create(product=catalogue["cat"], user=user, rating=5)
        Review.objects.create(product=catalogue["round"], user=other_user, rating=2)
        assert self.names(anon_client.get("/products/", {"sort": "rating"}))[:2] == ["Cat Eye Rose", "Round Classic"]

    def test_popular_sort(self, anon_client, catalogue, user):
        order = Order.objects.create(user=user, order_number="EFTEST0001", ship_name="A", ship_phone="9876543210",
                                     ship_address="12 MG Road Kochi", ship_city="Kochi", ship_state="Kerala",
                                     ship_pincode="682001")
        OrderItem.objects.create(order=order, product=catalogue["round"], product_name="Round Classic",
                                 quantity=5, price=Decimal("1200"))
        assert self.names(anon_client.get("/products/", {"sort": "popular"}))[0] == "Round Classic"

    def test_pagination(self, anon_client, catalogue):
        data = anon_client.get("/products/", {"limit": 2, "page": 2}).json()
        assert data["pagination"] == {"page": 2, "limit": 2, "total": 3, "totalPages": 2}
        assert len(data["products"]) == 1

    def test_page_past_the_end_shows_last_page(self, anon_client, catalogue):
        data = anon_client.get("/products/", {"limit": 2, "page": 9}).json()
        assert data["pagination"] == {"page": 2, "limit": 2, "total": 3, "totalPages": 2}
        assert len(data["products"]) == 1

    def test_empty_listing(self, anon_client, db):
        data = anon_client.get("/products/").json()
        assert data["products"] == []
        assert data["pagination"]["totalPages"] == 0

    def test_bad_filter_values_are_ignored(self, anon_client, catalogue):
        data = anon_client.get("/products/", {"minPrice": "cheap", "sort": "random"}).json()
        assert data["pagination"]["total"] == 3

    def test_detail_with_related(self, anon_client, catalogue):
        data = anon_client.get("/products/round-classic/").json()["product"]
        assert data["attributes"]["shape"] == "ROUND"
        assert [r["name"] for r in data["related"]] == ["Cat Eye Rose"]
        assert data["rating"] == {"average": 0, "count": 0}

    def test_detail_of_inactive_is_404(self, anon_client, catalogue):
        assert anon_client.get(f"/products/{catalogue['hidden'].slug}/").status_code == 404

    def test_suggestions(self, anon_client, catalogue):
        assert anon_client.get("/products/search/suggestions/", {"q": "a"}).json()["suggestions"] == []
        names = [s["name"] for s in anon_client.get("/products/search/suggestions/", {"q": "ro"}).json()["suggestions"]]
        assert names == ["Cat Eye Rose", "Round Classic"]

    def test_suggestions_capped_at_five(self, anon_client, db):
        for i in range(7):
            make_product(name=f"Wayfarer {i}", sku=f"W{i}")
        assert len(anon_client.get("/products/search/suggestions/", {"q": "way"}).json()["suggestions"]) == 5

    def test_categories_with_counts(self, anon_client, catalogue):
        cats = {c["slug"]: c["productCount"] for c in anon_client.get("/categories/").json()["categories"]}
        assert cats == {"eyeglasses": 2, "sunglasses": 1}


class TestReviews:
    def test_guest_cannot_post(self, anon_client, product):
        assert anon_client.post_json(f"/products/{product.slug}/reviews/", {"rating": 5}).status_code == 401

    def test_resubmission_updates(self, user_client, product):
        url = f"/products/{product.slug}/reviews/"
        assert user_client.post_json(url, {"rating": 4, "title": "Nice"}).status_code == 201
        resp = user_client.post_json(url, {"rating": 2, "title": "Scratched"})
        assert resp.status_code == 200
        assert Review.objects.get().rating == 2

        data = user_client.get(url).json()
        assert data["summary"] == {"average": 2.0, "count": 1}

    def test_rating_range(self, user_client, product):
        assert user_client.post_json(f"/products/{product.slug}/reviews/", {"rating": 6}).status_code == 400

    def test_verified_after_delivery(self, user_client, user, product):
        order = Order.objects.create(user=user, order_number="EFTEST0002", status=OrderStatus.DELIVERED,
                                     ship_name="A", ship_phone="9876543210", ship_address="12 MG Road Kochi",
                                     ship_city="Kochi", ship_state="Kerala", ship_pincode="682001")
        OrderItem.objects.create(order=order, product=product, product_name=product.name,
                                 quantity=1, price=product.price)
        review = user_client.post_json(f"/products/{product.slug}/reviews/", {"rating": 5}).json()["review"]
        assert Review.objects.get().is_verified is True
        assert review["rating"] == 5


class TestAdminProducts:
    def payload(self, **overrides):
        data = {
            "name": "Clubmaster Pro",
            "sku": "CM-PRO",
            "price": "1800",
            "stock": 12,
            "shape": "CLUBMASTER",
            "material": "MIXED",
            "images": ["https://cdn.example.com/cm-1.jpg", "https://cdn.example.com/cm-2.jpg"],
            "variants": [
                {"color": "Black", "colorCode": "#000000", "stock": 6},
                {"color": "Havana", "colorCode": "#6B4423", "stock": 6, "price": "1950"},
            ],
        }
        data.update(overrides)
        return data

    def test_create(self, staff_client):
        resp = staff_client.post_json("/admin/products/", self.payload())
        assert resp.status_code == 201
        product = Product.objects.get(sku="CM-PRO")
        assert product.slug == "clubmaster-pro"
        assert [i.url for i in product.images.all()] == self.payload()["images"]
        assert ProductVariant.objects.get(color="Havana").effective_price() == Decimal("1950")

    def test_bad_variant_rolls_back(self, staff_client):
        resp = staff_client.post_json("/admin/products/", self.payload(
            variants=[{"color": "Black", "colorCode": "black", "stock": 1}],
        ))
        assert resp.status_code == 400
        assert not Product.objects.exists()

    def test_duplicate_variant_color(self, staff_client):
        resp = staff_client.post_json("/admin/products/", self.payload(variants=[
            {"color": "Black", "colorCode": "#000000", "stock": 1},
            {"color": "Black", "colorCode": "#111111", "stock": 1},
        ]))
        assert resp.status_code == 400
        assert not Product.objects.exists()

    def test_bad_image_url(self, staff_client):
        assert staff_client.post_json("/admin/products/", self.payload(images=["not a url"])).status_code == 400

    def test_update_partial(self, staff_client, product):
        resp = staff_client.put_json(f"/admin/products/{product.id}/", {"price": "1100", "isFeatured": True})
        assert resp.status_code == 200
        product.refresh_from_db()
        assert product.price == Decimal("1100")
        assert product.is_featured is True
        assert product.images.count() == 1

    def test_delete(self, staff_client, product):
        assert staff_client.delete(f"/admin/products/{product.id}/").status_code == 200
        assert not Product.objects.exists()

    def test_customer_forbidden(self, user_client, db):
        assert user_client.post_json("/admin/products/", self.payload()).status_code == 403
