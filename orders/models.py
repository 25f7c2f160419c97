# orders/models.py

from decimal import Decimal

from django.conf import settings
from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    PROCESSING = 'PROCESSING', 'Processing'
    SHIPPED = 'SHIPPED', 'Shipped'
    DELIVERED = 'DELIVERED', 'Delivered'
    CANCELLED = 'CANCELLED', 'Cancelled'


class PaymentStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    PAID = 'PAID', 'Paid'
    FAILED = 'FAILED', 'Failed'
    REFUNDED = 'REFUNDED', 'Refunded'


class PaymentMethod(models.TextChoices):
    COD = 'COD', 'Cash on Delivery'
    RAZORPAY = 'RAZORPAY', 'Razorpay'
    UPI = 'UPI', 'UPI'


# Allowed moves; anything else is rejected
STATUS_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

USER_CANCELLABLE = {OrderStatus.PENDING, OrderStatus.PROCESSING}


class Order(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='orders')
    order_number = models.CharField(max_length=24, unique=True)

    status = models.CharField(max_length=12, choices=OrderStatus.choices, default=OrderStatus.PENDING, db_index=True)
    payment_status = models.CharField(max_length=10, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    payment_method = models.CharField(max_length=10, choices=PaymentMethod.choices, default=PaymentMethod.COD)

    # Razorpay
    razorpay_order_id = models.CharField(max_length=100, blank=True, null=True, help_text="Razorpay Order ID for tracking")
    payment_id = models.CharField(max_length=100, blank=True, null=True, unique=True, help_text="Razorpay Payment ID for refunds")
    refund_id = models.CharField(max_length=100, blank=True, null=True)

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    shipping_charge = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    coupon = models.ForeignKey('coupons.Coupon', on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    notes = models.TextField(blank=True)

    # Snapshot address fields
    ship_name = models.CharField(max_length=120)
    ship_phone = models.CharField(max_length=10)
    ship_address = models.CharField(max_length=255)
    ship_landmark = models.CharField(max_length=255, blank=True)
    ship_city = models.CharField(max_length=120)
    ship_state = models.CharField(max_length=120)
    ship_pincode = models.CharField(max_length=6)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f'{self.order_number} - {self.user}'

    def can_transition_to(self, new_status):
        return new_status in STATUS_TRANSITIONS.get(self.status, set())

    @property
    def is_user_cancellable(self):
        return self.status in USER_CANCELLABLE

    @property
    def shipping_address(self):
        return {
            "name": self.ship_name,
            "phone": self.ship_phone,
            "address": self.ship_address,
            "landmark": self.ship_landmark,
            "city": self.ship_city,
            "state": self.ship_state,
            "pincode": self.ship_pincode,
        }


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('products.Product', on_delete=models.SET_NULL, null=True, related_name='order_items')
    variant = models.ForeignKey('products.ProductVariant', on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items')

    # Snapshots
    product_name = models.CharField(max_length=255)
    variant_color = models.CharField(max_length=50, blank=True)
    image = models.URLField(max_length=500, blank=True, null=True)
    quantity = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=12, decimal_places=2, help_text="Frame unit price at purchase")

    lens_type = models.CharField(max_length=32, blank=True)
    lens_package = models.CharField(max_length=32, blank=True)
    lens_thickness = models.CharField(max_length=32, blank=True)
    prescription_option = models.CharField(max_length=16, blank=True)
    prescription_image = models.URLField(max_length=500, blank=True, null=True)
    lens_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f'{self.product_name} x{self.quantity}'

    def unit_total(self):
        return self.price + self.lens_price

    def line_total(self):
        return self.unit_total() * self.quantity


class OrderTracking(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='tracking')
    status = models.CharField(max_length=40)
    message = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return f'{self.order.order_number}: {self.status}'
