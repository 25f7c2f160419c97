# products/models.py

from decimal import Decimal
from django.conf import settings
from django.db import models
from django.db.models import Avg, Count
from django.utils.text import slugify
from django.core.validators import MinValueValidator, MaxValueValidator, RegexValidator
from django.core.exceptions import ValidationError

from .constants import FRAME_SHAPES, FRAME_MATERIALS, GENDERS, FRAME_SIZES


class Product(models.Model):
    # Basic Info
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True, blank=True)
    description = models.TextField(blank=True, null=True)
    sku = models.CharField(max_length=64, unique=True)

    brand = models.ForeignKey('category.Brand', on_delete=models.SET_NULL, blank=True, null=True, related_name="products")
    category = models.ForeignKey('category.Category', on_delete=models.SET_NULL, blank=True, null=True, related_name="products")

    # Pricing (compare_price is the struck-through MRP shown on sale items)
    price = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0.01"))]
    )
    compare_price = models.DecimalField(
        max_digits=10, decimal_places=2, blank=True, null=True,
        validators=[MinValueValidator(Decimal("0.01"))]
    )

    stock = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True, db_index=True)
    is_featured = models.BooleanField(default=False)

    # Frame attributes
    shape = models.CharField(max_length=20, choices=FRAME_SHAPES)
    material = models.CharField(max_length=20, choices=FRAME_MATERIALS)
    gender = models.CharField(max_length=10, choices=GENDERS, default='UNISEX')
    frame_size = models.CharField(max_length=20, choices=FRAME_SIZES, default='MEDIUM')
    frame_width = models.PositiveIntegerField(blank=True, null=True, help_text="mm")
    bridge_width = models.PositiveIntegerField(blank=True, null=True, help_text="mm")
    temple_length = models.PositiveIntegerField(blank=True, null=True, help_text="mm")
    weight = models.PositiveIntegerField(blank=True, null=True, help_text="grams")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["is_active"]),
            models.Index(fields=["-created_at"]),
        ]

    def clean(self):
        if self.compare_price is not None and self.price is not None and self.compare_price <= self.price:
            raise ValidationError("Compare price must be greater than price.")

    def save(self, *args, **kwargs):
        if not self.slug:
            base = slugify(self.name)[:200] or "product"
            slug = base
            idx = 1
            while Product.objects.filter(slug=slug).exclude(pk=self.pk).exists():
                slug = f"{base}-{idx}"
                idx += 1
            self.slug = slug
        self.clean()
        super().save(*args, **kwargs)

    @property
    def is_in_stock(self):
        return self.stock > 0

    @property
    def is_low_stock(self):
        """Check if stock is at or below the alert threshold"""
        return self.stock <= settings.LOW_STOCK_THRESHOLD

    @property
    def primary_image_url(self):
        imgs = getattr(self, "prefetched_images", None)
        if imgs is None:
            imgs = list(self.images.all()[:1])
        return imgs[0].url if imgs else None

    def get_discount_percent(self):
        if not self.compare_price:
            return 0
        return int(((self.compare_price - self.price) / self.compare_price * 100).quantize(Decimal("1")))

    def rating_summary(self):
        agg = self.reviews.aggregate(avg=Avg("rating"), count=Count("id"))
        avg = agg["avg"]
        return {
            "average": round(float(avg), 1) if avg is not None else 0,
            "count": agg["count"],
        }

    def __str__(self):
        return self.name


class ProductVariant(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="variants")
    color = models.CharField(max_length=50)
    color_code = models.CharField(
        max_length=7,
        validators=[RegexValidator(r'^#[0-9A-Fa-f]{6}$', "Invalid color code")],
    )
    stock = models.PositiveIntegerField(default=0)
    # Overrides product.price when set
    price = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True,
                                validators=[MinValueValidator(Decimal("0.01"))])

    class Meta:
        ordering = ["id"]
        constraints = [
            # color uniqueness per product
            models.UniqueConstraint(fields=["product", "color"], name="unique_product_variant_color"),
        ]

    def clean(self):
        if not self.color.strip():
            raise ValidationError("Color cannot be empty.")

    def effective_price(self):
        return self.price if self.price is not None else self.product.price

    def __str__(self):
        return f"{self.product.name} - {self.color}"


class ProductImage(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="images")
    url = models.URLField(max_length=500)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position", "id"]

    def __str__(self):
        return f"{self.product.name} - Image {self.position}"


class Review(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="reviews")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="reviews")
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    title = models.CharField(max_length=150, blank=True)
    comment = models.TextField(blank=True)
    is_verified = models.BooleanField(default=False, help_text="Reviewer has a delivered order with this product")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["user", "product"], name="one_review_per_user_product"),
        ]

    def __str__(self):
        return f"{self.product.name} - {self.rating}★ by {self.user}"
