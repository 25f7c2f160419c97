# coupons/views.py
import logging

from django.core.exceptions import ValidationError
from django.db.models import Q
from django.forms.models import model_to_dict
from django.http import JsonResponse
from django.views.decorators.cache import never_cache
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST, require_http_methods

from eyewear.utils import api_staff_required, parse_json_body, first_form_error, get_page_params, paginate
from products.utils import money
from .forms import CouponForm, CouponValidateForm
from .models import Coupon
from .services import find_applicable_coupon

logger = logging.getLogger(__name__)


def coupon_dict(coupon):
    return {
        "id": coupon.id,
        "code": coupon.code,
        "description": coupon.description,
        "discountType": coupon.discount_type,
        "discountValue": money(coupon.discount_value),
        "minPurchase": money(coupon.min_purchase),
        "maxDiscount": money(coupon.max_discount),
        "usageLimit": coupon.usage_limit,
        "usedCount": coupon.used_count,
        "startDate": coupon.start_date.isoformat(),
        "endDate": coupon.end_date.isoformat(),
        "isActive": coupon.is_active,
    }


# ============================================
# CUSTOMER
# ============================================

@require_POST
def validate_coupon(request):
    """Preview a coupon against the current subtotal"""
    payload = parse_json_body(request)
    if payload is None:
        return JsonResponse({"valid": False, "error": "Invalid request body"}, status=400)

    form = CouponValidateForm(payload)
    if not form.is_valid():
        return JsonResponse({"valid": False, "error": first_form_error(form)}, status=400)

    subtotal = form.cleaned_data['subtotal']
    try:
        coupon, discount = find_applicable_coupon(form.cleaned_data['code'], subtotal)
    except ValidationError as e:
        return JsonResponse({"valid": False, "error": e.messages[0]}, status=400)

    return JsonResponse({
        "valid": True,
        "code": coupon.code,
        "discount": money(discount),
        "total": money(subtotal - discount),
        "message": f"Coupon {coupon.code} applied",
    })


# ============================================
# ADMIN
# ============================================

_FIELD_MAP = {
    "code": "code",
    "description": "description",
    "discountType": "discount_type",
    "discountValue": "discount_value",
    "minPurchase": "min_purchase",
    "maxDiscount": "max_discount",
    "usageLimit": "usage_limit",
    "startDate": "start_date",
    "endDate": "end_date",
    "isActive": "is_active",
}


def _form_data(payload, instance=None):
    data = model_to_dict(instance, fields=CouponForm.Meta.fields) if instance else {"is_active": True}
    for key, field in _FIELD_MAP.items():
        if key in payload:
            data[field] = payload[key]
    return data


@csrf_exempt
@never_cache
@api_staff_required
@require_http_methods(["GET", "POST"])
def admin_coupons(request):
    if request.method == "GET":
        status_filter = request.GET.get('status', 'all')
        search_query = request.GET.get('search', '').strip()

        coupons = Coupon.objects.all()
        if status_filter == 'active':
            coupons = coupons.filter(is_active=True)
        elif status_filter == 'inactive':
            coupons = coupons.filter(is_active=False)
        if search_query:
            coupons = coupons.filter(Q(code__icontains=search_query) | Q(description__icontains=search_query))

        page, limit = get_page_params(request)
        rows, pagination = paginate(coupons, page, limit)
        return JsonResponse({"coupons": [coupon_dict(c) for c in rows], "pagination": pagination})

    payload = parse_json_body(request)
    if payload is None:
        return JsonResponse({"error": "Invalid request body"}, status=400)
    form = CouponForm(_form_data(payload))
    if not form.is_valid():
        return JsonResponse({"error": first_form_error(form)}, status=400)
    coupon = form.save()
    logger.info("Coupon %s created by %s", coupon.code, request.user.pk)
    return JsonResponse({"coupon": coupon_dict(coupon)}, status=201)


@csrf_exempt
@never_cache
@api_staff_required
@require_http_methods(["GET", "PUT", "DELETE"])
def admin_coupon_detail(request, coupon_id):
    coupon = Coupon.objects.filter(pk=coupon_id).first()
    if coupon is None:
        return JsonResponse({"error": "Coupon not found"}, status=404)

    if request.method == "GET":
        return JsonResponse({"coupon": coupon_dict(coupon)})

    if request.method == "DELETE":
        coupon.delete()
        logger.info("Coupon %s deleted by %s", coupon_id, request.user.pk)
        return JsonResponse({"success": True})

    payload = parse_json_body(request)
    if payload is None:
        return JsonResponse({"error": "Invalid request body"}, status=400)
    form = CouponForm(_form_data(payload, coupon), instance=coupon)
    if not form.is_valid():
        return JsonResponse({"error": first_form_error(form)}, status=400)
    coupon = form.save()
    return JsonResponse({"coupon": coupon_dict(coupon)})
