# coupons/services.py
import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, Q

from .models import Coupon

logger = logging.getLogger(__name__)


def find_applicable_coupon(code, subtotal, lock=False):
    """
    Look up a coupon by code (case-insensitive) and check it against a subtotal.
    Returns (coupon, discount). Raises ValidationError with a customer-facing message.

    Pass ``lock=True`` inside a transaction to hold the coupon row until commit.
    """
    code = (code or '').strip().upper()
    if not code:
        raise ValidationError("Enter a coupon code")
    coupons = Coupon.objects.select_for_update() if lock else Coupon.objects
    coupon = coupons.filter(code=code).first()
    if coupon is None:
        raise ValidationError("Invalid coupon code")
    discount = coupon.validate_for(subtotal)
    return coupon, discount


def record_usage(coupon):
    """
    Count one redemption. Called inside the order transaction.
    The increment only lands while the coupon is under its usage limit.
    """
    with transaction.atomic():
        updated = (
            Coupon.objects.filter(id=coupon.id)
            .filter(Q(usage_limit__isnull=True) | Q(used_count__lt=F('usage_limit')))
            .update(used_count=F('used_count') + 1)
        )
        if not updated:
            raise ValidationError("Coupon usage limit reached")
        coupon.refresh_from_db(fields=['used_count'])
    logger.info("Coupon %s used (%s/%s)", coupon.code, coupon.used_count, coupon.usage_limit or '∞')
