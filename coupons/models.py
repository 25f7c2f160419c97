# coupons/models.py
from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class DiscountType(models.TextChoices):
    PERCENTAGE = 'PERCENTAGE', 'Percentage'
    FIXED = 'FIXED', 'Fixed amount'


class Coupon(models.Model):
    code = models.CharField(max_length=20, unique=True)
    description = models.CharField(max_length=255, blank=True, null=True)
    discount_type = models.CharField(max_length=10, choices=DiscountType.choices)
    discount_value = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])

    # Purchase limits
    min_purchase = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True, help_text="Minimum cart value")
    max_discount = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True, help_text="Cap for percentage coupons")

    # Usage limits
    usage_limit = models.PositiveIntegerField(blank=True, null=True, help_text="Total usage limit (empty = unlimited)")
    used_count = models.PositiveIntegerField(default=0)

    # Validity window
    start_date = models.DateTimeField(default=timezone.now)
    end_date = models.DateTimeField()

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        suffix = '%' if self.discount_type == DiscountType.PERCENTAGE else '₹'
        return f"{self.code} - {self.discount_value}{suffix} off"

    def clean(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({'end_date': "End date must be after the start date."})
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value and self.discount_value > 100:
            raise ValidationError({'discount_value': "Percentage discount cannot exceed 100."})

    def save(self, *args, **kwargs):
        self.code = (self.code or '').strip().upper()
        super().save(*args, **kwargs)

    def is_valid(self, now=None):
        """Check if coupon is currently usable (ignores cart value)"""
        now = now or timezone.now()

        if not self.is_active:
            return False, "Coupon is inactive"
        if now < self.start_date:
            return False, "Coupon is not yet active"
        if now > self.end_date:
            return False, "Coupon has expired"
        if self.usage_limit is not None and self.used_count >= self.usage_limit:
            return False, "Coupon usage limit reached"
        return True, "Valid"

    def calculate_discount(self, subtotal):
        """Discount amount for a cart subtotal, never above the subtotal"""
        subtotal = Decimal(subtotal)
        if self.discount_type == DiscountType.PERCENTAGE:
            discount = (subtotal * self.discount_value / Decimal('100')).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
            if self.max_discount:
                discount = min(discount, self.max_discount)
        else:
            discount = self.discount_value
        return min(discount, subtotal)

    def validate_for(self, subtotal, now=None):
        """Raise ValidationError unless the coupon applies to this subtotal; return the discount."""
        ok, msg = self.is_valid(now)
        if not ok:
            raise ValidationError(msg)
        if self.min_purchase and Decimal(subtotal) < self.min_purchase:
            raise ValidationError(f"Minimum purchase of ₹{self.min_purchase:.0f} required for this coupon")
        return self.calculate_discount(subtotal)
