# ============================================
# ALL IMPORTS
# ============================================

# Python Standard Library
import logging
from datetime import timedelta

# Django Core
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.db.models import Count, Q, Sum
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.cache import never_cache
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods

# Local App Imports
from eyewear.utils import (
    api_staff_required, first_form_error, get_page_params, paginate, parse_json_body,
)
from orders.models import Order, OrderStatus, PaymentStatus
from products.models import Product
from products.utils import money
from user.views import role_of
from .forms import UserRoleForm

logger = logging.getLogger(__name__)
User = get_user_model()


# ============================================
# NOTIFICATIONS
# ============================================

def build_notifications(now=None):
    now = now or timezone.now()
    notifications = []

    recent_orders = (
        Order.objects.filter(created_at__gte=now - timedelta(hours=24))
        .select_related('user')
        .order_by('-created_at')[:3]
    )
    for order in recent_orders:
        who = order.user.get_full_name() or order.user.email or order.user.username
        notifications.append({
            "id": f"order-{order.id}",
            "type": "order",
            "title": f"New Order #{order.order_number}",
            "message": f"Order worth ₹{order.total:,.2f} from {who}",
            "createdAt": order.created_at,
        })

    low_stock = (
        Product.objects.filter(stock__lte=settings.LOW_STOCK_THRESHOLD, is_active=True)
        .order_by('stock', 'id')[:3]
    )
    for product in low_stock:
        notifications.append({
            "id": f"stock-{product.id}",
            "type": "stock",
            "title": "Low Stock Alert",
            "message": f"{product.name} is running low ({product.stock} left)",
            "createdAt": product.updated_at,
        })

    notifications.sort(key=lambda n: n["createdAt"], reverse=True)
    for n in notifications:
        n["createdAt"] = n["createdAt"].isoformat()
    return notifications[:10]


@never_cache
@api_staff_required
@require_GET
def admin_notifications(request):
    try:
        notifications = build_notifications()
    except DatabaseError:
        logger.exception("Notifications query failed")
        notifications = []
    return JsonResponse({"notifications": notifications})


# ============================================
# DASHBOARD
# ============================================

@never_cache
@api_staff_required
@require_GET
def admin_dashboard(request):
    today = timezone.localdate()

    paid = Order.objects.filter(payment_status=PaymentStatus.PAID)
    revenue = paid.aggregate(total=Sum("total"))["total"] or 0
    revenue_today = paid.filter(paid_at__date=today).aggregate(total=Sum("total"))["total"] or 0

    status_counts = {s: 0 for s in OrderStatus.values}
    for status in Order.objects.values_list("status", flat=True):
        status_counts[status] = status_counts.get(status, 0) + 1

    return JsonResponse({
        "orders": {
            "total": sum(status_counts.values()),
            "byStatus": status_counts,
        },
        "products": {
            "total": Product.objects.count(),
            "active": Product.objects.filter(is_active=True).count(),
            "lowStock": Product.objects.filter(
                is_active=True, stock__lte=settings.LOW_STOCK_THRESHOLD
            ).count(),
        },
        "users": {"total": User.objects.filter(is_active=True, is_staff=False).count()},
        "revenue": {"total": money(revenue), "today": money(revenue_today)},
    })


# ============================================
# USER MANAGEMENT
# ============================================

def user_row(user):
    profile = getattr(user, 'profile', None)
    return {
        "id": user.id,
        "name": user.get_full_name() or user.username,
        "email": user.email,
        "phone": (profile.phone or None) if profile else None,
        "role": role_of(user),
        "isActive": user.is_active,
        "createdAt": user.date_joined.isoformat(),
        "orderCount": user.order_count,
        "reviewCount": user.review_count,
    }


@never_cache
@api_staff_required
@require_GET
def admin_user_list(request):
    users = User.objects.select_related('profile').annotate(
        order_count=Count('orders', distinct=True),
        review_count=Count('reviews', distinct=True),
    )

    query = (request.GET.get('q') or request.GET.get('search') or '').strip()
    if query:
        users = users.filter(
            Q(username__icontains=query) |
            Q(first_name__icontains=query) |
            Q(last_name__icontains=query) |
            Q(email__icontains=query)
        )

    role = (request.GET.get('role') or '').upper()
    if role == 'ADMIN':
        users = users.filter(is_staff=True)
    elif role == 'USER':
        users = users.filter(is_staff=False)

    sort = request.GET.get('sort')
    if sort == 'oldest':
        users = users.order_by('date_joined', 'id')
    elif sort == 'name':
        users = users.order_by('first_name', 'last_name', 'username')
    else:
        users = users.order_by('-date_joined', '-id')

    page, limit = get_page_params(request)
    rows, pagination = paginate(users, page, limit)

    admins = User.objects.filter(is_staff=True).count()
    total = User.objects.count()
    return JsonResponse({
        "users": [user_row(u) for u in rows],
        "pagination": pagination,
        "stats": {"total": total, "admins": admins, "customers": total - admins},
    })


@csrf_exempt
@api_staff_required
@require_http_methods(["PATCH"])
def admin_user_role(request, user_id):
    payload = parse_json_body(request)
    if payload is None:
        return JsonResponse({"error": "Invalid request body"}, status=400)
    form = UserRoleForm(payload)
    if not form.is_valid():
        return JsonResponse({"error": first_form_error(form)}, status=400)
    role = form.cleaned_data['role']

    # an admin can't demote themselves
    if user_id == request.user.id and role != "ADMIN":
        return JsonResponse({"error": "You cannot change your own role"}, status=400)

    user = User.objects.filter(pk=user_id).first()
    if user is None:
        return JsonResponse({"error": "User not found"}, status=404)

    user.is_staff = role == "ADMIN"
    user.save(update_fields=['is_staff'])
    logger.info("User %s role set to %s by %s", user.pk, role, request.user.pk)
    return JsonResponse({"user": {
        "id": user.id,
        "name": user.get_full_name() or user.username,
        "email": user.email,
        "role": role_of(user),
    }})
