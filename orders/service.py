# orders/service.py
"""
Order placement and lifecycle.

Everything that touches money or stock goes through here so views stay thin.
Business-rule failures raise django.core.exceptions.ValidationError.
"""
import logging
import secrets
import string
import time
from collections import defaultdict
from decimal import Decimal

import razorpay
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from coupons.services import find_applicable_coupon, record_usage
from products.constants import lens_price
from products.models import Product, ProductVariant
from .models import (
    Order, OrderItem, OrderTracking, OrderStatus, PaymentStatus, PaymentMethod,
)

logger = logging.getLogger(__name__)

# Initialize Razorpay client
razorpay_client = razorpay.Client(auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET))

_B36 = string.digits + string.ascii_uppercase


def _to_base36(n):
    out = ''
    while n:
        n, r = divmod(n, 36)
        out = _B36[r] + out
    return out or '0'


def gen_order_number():
    """EF + base36 millisecond timestamp + 4 random chars, e.g. EFM3K2Q8ZB7XQ"""
    stamp = _to_base36(int(time.time() * 1000))
    tail = ''.join(secrets.choice(_B36) for _ in range(4))
    return f"EF{stamp}{tail}"


def shipping_charge_for(subtotal):
    return Decimal('0') if subtotal >= settings.FREE_SHIPPING_THRESHOLD else Decimal(settings.SHIPPING_CHARGE)


def add_tracking(order, status, message):
    return OrderTracking.objects.create(order=order, status=status, message=message)


# ==================== PLACE ORDER ====================

def place_order(user, address, cart_lines, payment_method=PaymentMethod.COD, coupon_code=None, notes=''):
    """
    Turn cart lines into an Order. Prices are re-read from the database and the
    lens catalogue; the cart's own prices are ignored.
    """
    if not cart_lines:
        raise ValidationError("Cart is empty")
    if address.user_id != user.pk:
        raise ValidationError("Invalid address")
    if payment_method not in PaymentMethod.values:
        raise ValidationError("Invalid payment method")

    with transaction.atomic():
        try:
            product_ids = {int(line.product_id) for line in cart_lines}
            variant_ids = {int(line.variant_id) for line in cart_lines if line.variant_id}
        except (TypeError, ValueError):
            raise ValidationError("Some products are unavailable")

        products = {
            p.id: p for p in Product.objects.select_for_update().filter(id__in=product_ids, is_active=True)
        }
        if len(products) != len(product_ids):
            raise ValidationError("Some products are unavailable")

        variants = {v.id: v for v in ProductVariant.objects.select_for_update().filter(id__in=variant_ids)}

        # 1) price every line and total up the stock each row needs
        priced = []
        need_product = defaultdict(int)
        need_variant = defaultdict(int)
        subtotal = Decimal('0')

        for line in cart_lines:
            product = products[int(line.product_id)]
            variant = None
            unit = product.price
            if line.variant_id:
                variant = variants.get(int(line.variant_id))
                if variant is None or variant.product_id != product.id:
                    raise ValidationError(f"Invalid variant for {product.name}")
                unit = variant.effective_price()
                need_variant[variant.id] += line.quantity
            need_product[product.id] += line.quantity

            lens = line.lens_options
            add_on = lens_price(lens.lens_type, lens.lens_package, lens.lens_thickness) if lens else Decimal('0')
            subtotal += (unit + add_on) * line.quantity
            priced.append((line, product, variant, unit, add_on))

        # 2) stock check
        for vid, qty in need_variant.items():
            if variants[vid].stock < qty:
                raise ValidationError(f"Insufficient stock for {variants[vid].product.name} ({variants[vid].color})")
        for pid, qty in need_product.items():
            if products[pid].stock < qty:
                raise ValidationError(f"Insufficient stock for {products[pid].name}")

        # 3) coupon
        discount = Decimal('0')
        coupon = None
        if coupon_code:
            coupon, discount = find_applicable_coupon(coupon_code, subtotal, lock=True)

        shipping = shipping_charge_for(subtotal)
        total = subtotal - discount + shipping

        order = Order.objects.create(
            user=user,
            order_number=gen_order_number(),
            payment_method=payment_method,
            subtotal=subtotal,
            discount=discount,
            shipping_charge=shipping,
            total=total,
            coupon=coupon,
            notes=notes or '',
            ship_name=address.name,
            ship_phone=address.phone,
            ship_address=address.address,
            ship_landmark=address.landmark,
            ship_city=address.city,
            ship_state=address.state,
            ship_pincode=address.pincode,
        )

        for line, product, variant, unit, add_on in priced:
            lens = line.lens_options
            OrderItem.objects.create(
                order=order,
                product=product,
                variant=variant,
                product_name=product.name,
                variant_color=variant.color if variant else '',
                image=product.primary_image_url,
                quantity=line.quantity,
                price=unit,
                lens_type=lens.lens_type if lens else '',
                lens_package=lens.lens_package if lens else '',
                lens_thickness=lens.lens_thickness if lens else '',
                prescription_option=(lens.prescription_option or '') if lens else '',
                prescription_image=lens.prescription_image if lens else None,
                lens_price=add_on,
            )

        # 4) stock out (rows are locked above)
        for vid, qty in need_variant.items():
            ProductVariant.objects.filter(id=vid).update(stock=F('stock') - qty)
        for pid, qty in need_product.items():
            Product.objects.filter(id=pid).update(stock=F('stock') - qty)

        if coupon:
            record_usage(coupon)

        add_tracking(order, "Order Placed", "Your order has been placed successfully")

    logger.info("Order %s placed by user %s: total=%s method=%s", order.order_number, user.pk, total, payment_method)
    return order


# ==================== STATUS ====================

def _restore_stock(order):
    for item in order.items.all():
        if item.variant_id:
            ProductVariant.objects.filter(id=item.variant_id).update(stock=F('stock') + item.quantity)
        if item.product_id:
            Product.objects.filter(id=item.product_id).update(stock=F('stock') + item.quantity)


_STATUS_MESSAGES = {
    OrderStatus.PROCESSING: "Your order is being processed",
    OrderStatus.SHIPPED: "Your order has been shipped",
    OrderStatus.DELIVERED: "Your order has been delivered",
    OrderStatus.CANCELLED: "Your order has been cancelled",
}


def transition_status(order, new_status, message=None):
    """Move an order along the status table. Cancelling puts stock back."""
    if new_status not in OrderStatus.values:
        raise ValidationError(f"Unknown status {new_status}")
    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        if not order.can_transition_to(new_status):
            raise ValidationError(f"Cannot change order status from {order.status} to {new_status}")

        order.status = new_status
        update_fields = ['status', 'updated_at']
        if new_status == OrderStatus.DELIVERED and order.payment_method == PaymentMethod.COD:
            order.payment_status = PaymentStatus.PAID
            order.paid_at = timezone.now()
            update_fields += ['payment_status', 'paid_at']
        order.save(update_fields=update_fields)

        if new_status == OrderStatus.CANCELLED:
            _restore_stock(order)
        add_tracking(order, new_status, message or _STATUS_MESSAGES.get(new_status, new_status))

    logger.info("Order %s -> %s", order.order_number, new_status)
    return order


def cancel_order(order, by_user=True):
    if by_user and not order.is_user_cancellable:
        raise ValidationError("This order can no longer be cancelled")
    message = "Order cancelled by customer" if by_user else "Order cancelled by admin"
    return transition_status(order, OrderStatus.CANCELLED, message)


# ==================== REFUND ====================

def refund_order(order):
    """
    Admin refund. Paid online orders are refunded through Razorpay first;
    the order then becomes CANCELLED / REFUNDED. Stock goes back unless the
    order was already cancelled.

    The order row stays locked across the gateway call, so a second refund
    waits and then sees REFUNDED.
    """
    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        if order.payment_status == PaymentStatus.REFUNDED:
            raise ValidationError("Order already refunded")
        if order.status == OrderStatus.DELIVERED:
            raise ValidationError("Delivered orders cannot be refunded here")

        refund_id = None
        if order.payment_status == PaymentStatus.PAID and order.payment_method != PaymentMethod.COD:
            if not order.payment_id:
                raise ValidationError("No gateway payment to refund")
            try:
                refund = razorpay_client.payment.refund(
                    order.payment_id,
                    {
                        "amount": int(order.total * 100),  # paise
                        "speed": "normal",
                        "notes": {"order_number": order.order_number, "reason": "Refunded by admin"},
                    },
                )
            except razorpay.errors.BadRequestError as e:
                logger.error("Razorpay rejected refund for %s: %s", order.order_number, e)
                raise ValidationError(f"Refund rejected by payment gateway: {e}")
            except Exception as e:
                logger.exception("Unexpected error in Razorpay refund for %s", order.order_number)
                raise ValidationError("Payment gateway refund failed") from e
            refund_id = refund.get('id')
            logger.info("Razorpay refund %s created for %s", refund_id, order.order_number)

        if order.status != OrderStatus.CANCELLED:
            _restore_stock(order)
        order.status = OrderStatus.CANCELLED
        order.payment_status = PaymentStatus.REFUNDED
        order.refund_id = refund_id
        order.save(update_fields=['status', 'payment_status', 'refund_id', 'updated_at'])
        add_tracking(order, "REFUNDED", "Order refunded by admin")
    return order
