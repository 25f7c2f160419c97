# orders/views.py
import logging
from datetime import timedelta

from django.core.exceptions import ValidationError
from django.db.models import Q
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.cache import never_cache
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods, require_POST, require_GET

from cart.views import get_session_cart
from eyewear.utils import (
    api_login_required, api_staff_required, parse_json_body, first_form_error,
    get_page_params, paginate,
)
from products.utils import money
from user.models import Address
from .forms import PlaceOrderForm, OrderStatusForm
from .models import Order
from .service import place_order, transition_status, cancel_order, refund_order

logger = logging.getLogger(__name__)


def order_dict(order, with_tracking=False):
    data = {
        "id": order.id,
        "orderNumber": order.order_number,
        "status": order.status,
        "paymentStatus": order.payment_status,
        "paymentMethod": order.payment_method,
        "subtotal": money(order.subtotal),
        "discount": money(order.discount),
        "shippingCharge": money(order.shipping_charge),
        "total": money(order.total),
        "couponCode": order.coupon.code if order.coupon else None,
        "notes": order.notes,
        "createdAt": order.created_at.isoformat(),
        "address": order.shipping_address,
        "items": [
            {
                "id": item.id,
                "productId": str(item.product_id) if item.product_id else None,
                "variantId": str(item.variant_id) if item.variant_id else None,
                "name": item.product_name,
                "color": item.variant_color or None,
                "image": item.image,
                "quantity": item.quantity,
                "price": money(item.price),
                "lensType": item.lens_type or None,
                "lensPackage": item.lens_package or None,
                "lensThickness": item.lens_thickness or None,
                "lensPrice": money(item.lens_price),
                "lineTotal": money(item.line_total()),
            }
            for item in order.items.all()
        ],
    }
    if with_tracking:
        data["tracking"] = [
            {"status": t.status, "message": t.message, "createdAt": t.created_at.isoformat()}
            for t in order.tracking.all()
        ]
    return data


# ==================== CUSTOMER ====================

@csrf_exempt
@never_cache
@api_login_required
@require_http_methods(["GET", "POST"])
def orders_api(request):
    if request.method == "GET":
        page, limit = get_page_params(request, default_limit=10)
        qs = Order.objects.filter(user=request.user).select_related('coupon').prefetch_related('items')
        rows, pagination = paginate(qs, page, limit)
        return JsonResponse({"orders": [order_dict(o) for o in rows], "pagination": pagination})

    payload = parse_json_body(request)
    if payload is None:
        return JsonResponse({"error": "Invalid request body"}, status=400)
    form = PlaceOrderForm(payload)
    if not form.is_valid():
        return JsonResponse({"error": first_form_error(form)}, status=400)
    cd = form.cleaned_data

    address = Address.objects.filter(pk=cd['addressId'], user=request.user).first()
    if address is None:
        return JsonResponse({"error": "Invalid address"}, status=400)

    cart = get_session_cart(request)
    try:
        order = place_order(
            request.user, address, cart.items,
            payment_method=cd['paymentMethod'],
            coupon_code=cd.get('couponCode') or None,
            notes=cd.get('notes') or '',
        )
    except ValidationError as e:
        logger.warning("Order rejected for user %s: %s", request.user.pk, e.messages[0])
        return JsonResponse({"error": e.messages[0]}, status=400)

    cart.clear_cart()
    return JsonResponse({
        "order": {
            "id": order.id,
            "orderNumber": order.order_number,
            "total": money(order.total),
            "paymentMethod": order.payment_method,
        },
        "message": "Order created successfully",
    }, status=201)


@never_cache
@api_login_required
@require_GET
def order_detail(request, pk):
    order = (
        Order.objects.filter(pk=pk, user=request.user)
        .select_related('coupon').prefetch_related('items', 'tracking').first()
    )
    if order is None:
        return JsonResponse({"error": "Order not found"}, status=404)
    return JsonResponse({"order": order_dict(order, with_tracking=True)})


@csrf_exempt
@api_login_required
@require_POST
def cancel_order_view(request, pk):
    order = Order.objects.filter(pk=pk, user=request.user).first()
    if order is None:
        return JsonResponse({"error": "Order not found"}, status=404)
    try:
        order = cancel_order(order, by_user=True)
    except ValidationError as e:
        return JsonResponse({"error": e.messages[0]}, status=400)
    return JsonResponse({"success": True, "status": order.status, "message": "Order cancelled"})


# ==================== ADMIN ====================

@never_cache
@api_staff_required
@require_GET
def admin_order_list(request):
    qs = Order.objects.select_related('user', 'coupon').prefetch_related('items')

    q = (request.GET.get("search") or request.GET.get("q") or "").strip()
    rng = request.GET.get("range") or "all"
    status = (request.GET.get("status") or "").strip().upper()

    if q:
        qs = qs.filter(
            Q(order_number__icontains=q) |
            Q(items__product_name__icontains=q) |
            Q(user__email__icontains=q) |
            Q(user__username__icontains=q) |
            Q(ship_name__icontains=q)
        ).distinct()

    now = timezone.now()
    if rng == "30d":
        qs = qs.filter(created_at__gte=now - timedelta(days=30))
    elif rng == "7d":
        qs = qs.filter(created_at__gte=now - timedelta(days=7))
    elif rng == "24h":
        qs = qs.filter(created_at__gte=now - timedelta(hours=24))

    if status:
        qs = qs.filter(status=status)

    page, limit = get_page_params(request)
    rows, pagination = paginate(qs.order_by('-created_at', '-id'), page, limit)
    orders = []
    for o in rows:
        data = order_dict(o)
        data["customer"] = {"id": o.user_id, "username": o.user.username, "email": o.user.email}
        orders.append(data)
    return JsonResponse({"orders": orders, "pagination": pagination})


@never_cache
@api_staff_required
@require_GET
def admin_order_detail(request, pk):
    order = Order.objects.filter(pk=pk).select_related('user', 'coupon').prefetch_related('items', 'tracking').first()
    if order is None:
        return JsonResponse({"error": "Order not found"}, status=404)
    data = order_dict(order, with_tracking=True)
    data["customer"] = {"id": order.user_id, "username": order.user.username, "email": order.user.email}
    data["paymentId"] = order.payment_id
    data["refundId"] = order.refund_id
    return JsonResponse({"order": data})


@csrf_exempt
@api_staff_required
@require_http_methods(["PATCH"])
def admin_order_status(request, pk):
    order = Order.objects.filter(pk=pk).first()
    if order is None:
        return JsonResponse({"error": "Order not found"}, status=404)

    payload = parse_json_body(request)
    if payload is None:
        return JsonResponse({"error": "Invalid request body"}, status=400)
    form = OrderStatusForm(payload)
    if not form.is_valid():
        return JsonResponse({"error": first_form_error(form)}, status=400)

    new_status = form.cleaned_data['status']
    try:
        if new_status == 'CANCELLED':
            order = cancel_order(order, by_user=False)
        else:
            order = transition_status(order, new_status)
    except ValidationError as e:
        return JsonResponse({"error": e.messages[0]}, status=400)

    return JsonResponse({"order": {"id": order.id, "status": order.status, "paymentStatus": order.payment_status}})


@csrf_exempt
@api_staff_required
@require_POST
def admin_order_refund(request, pk):
    order = Order.objects.filter(pk=pk).first()
    if order is None:
        return JsonResponse({"error": "Order not found"}, status=404)
    try:
        order = refund_order(order)
    except ValidationError as e:
        return JsonResponse({"error": e.messages[0]}, status=400)
    logger.info("Order %s refunded by %s", order.order_number, request.user.pk)
    return JsonResponse({
        "order": {
            "id": order.id,
            "status": order.status,
            "paymentStatus": order.payment_status,
            "refundId": order.refund_id,
        }
    })
