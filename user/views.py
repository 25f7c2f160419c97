# user/views.py
import logging

from django.db import transaction
from django.db.models import Count
from django.forms.models import model_to_dict
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from eyewear.utils import api_login_required, parse_json_body, first_form_error
from .forms import AddressForm, ProfileForm
from .models import Address, Profile

logger = logging.getLogger(__name__)

_FIELD_MAP = {
    "name": "name",
    "phone": "phone",
    "address": "address",
    "landmark": "landmark",
    "city": "city",
    "state": "state",
    "pincode": "pincode",
    "type": "type",
    "isDefault": "is_default",
}


def _form_data(payload, instance=None):
    data = model_to_dict(instance, fields=AddressForm.Meta.fields) if instance else {"type": "HOME", "is_default": False}
    for key, field in _FIELD_MAP.items():
        if key in payload:
            data[field] = payload[key]
    return data


# ========== ADDRESS MANAGEMENT ==========

@csrf_exempt
@api_login_required
@require_http_methods(["GET", "POST"])
def address_list(request):
    """List the user's addresses (default first) or add one"""
    if request.method == "GET":
        addresses = Address.objects.filter(user=request.user)
        return JsonResponse({"addresses": [a.to_dict() for a in addresses]})

    payload = parse_json_body(request)
    if payload is None:
        return JsonResponse({"error": "Invalid request body"}, status=400)

    form = AddressForm(_form_data(payload))
    if not form.is_valid():
        return JsonResponse({"error": first_form_error(form)}, status=400)

    addr = form.save(commit=False)
    addr.user = request.user
    with transaction.atomic():
        # first address is always the default
        if not Address.objects.filter(user=request.user).exists():
            addr.is_default = True
        addr.save()
        if addr.is_default:
            Address.objects.filter(user=request.user).exclude(id=addr.id).update(is_default=False)
    logger.info("Address %s added for user %s", addr.pk, request.user.pk)
    return JsonResponse({"address": addr.to_dict()}, status=201)


@csrf_exempt
@api_login_required
@require_http_methods(["GET", "PUT", "DELETE"])
def address_detail(request, pk):
    addr = Address.objects.filter(pk=pk, user=request.user).first()
    if addr is None:
        return JsonResponse({"error": "Address not found"}, status=404)

    if request.method == "GET":
        return JsonResponse({"address": addr.to_dict()})

    if request.method == "DELETE":
        was_default = addr.is_default
        with transaction.atomic():
            addr.delete()
            if was_default:
                latest = Address.objects.filter(user=request.user).order_by('-created_at', '-id').first()
                if latest:
                    latest.is_default = True
                    latest.save(update_fields=['is_default'])
        return JsonResponse({"message": "Address deleted successfully"})

    payload = parse_json_body(request)
    if payload is None:
        return JsonResponse({"error": "Invalid request body"}, status=400)

    form = AddressForm(_form_data(payload, addr), instance=addr)
    if not form.is_valid():
        return JsonResponse({"error": first_form_error(form)}, status=400)

    with transaction.atomic():
        addr = form.save()
        if addr.is_default:
            Address.objects.filter(user=request.user).exclude(id=addr.id).update(is_default=False)
    return JsonResponse({"address": addr.to_dict()})


# ========== PROFILE ==========

def role_of(user):
    return "ADMIN" if user.is_staff else "USER"


def profile_dict(user, profile):
    return {
        "id": user.id,
        "name": user.get_full_name() or user.username,
        "email": user.email,
        "phone": profile.phone or None,
        "role": role_of(user),
        "createdAt": user.date_joined.isoformat(),
    }


@csrf_exempt
@api_login_required
@require_http_methods(["GET", "PUT", "PATCH"])
def profile(request):
    """Current user's profile with activity counts, or update name / phone"""
    user = request.user
    profile, _ = Profile.objects.get_or_create(user=user)

    if request.method == "GET":
        counts = type(user).objects.filter(pk=user.pk).aggregate(
            orders=Count('orders', distinct=True),
            reviews=Count('reviews', distinct=True),
            wishlist=Count('wishlist_items', distinct=True),
        )
        data = profile_dict(user, profile)
        data.update({
            "orderCount": counts["orders"],
            "reviewCount": counts["reviews"],
            "wishlistCount": counts["wishlist"],
        })
        return JsonResponse({"user": data})

    payload = parse_json_body(request)
    if payload is None:
        return JsonResponse({"error": "Invalid request body"}, status=400)

    form = ProfileForm({"name": payload.get("name") or "", "phone": payload.get("phone") or ""})
    if not form.is_valid():
        return JsonResponse({"error": first_form_error(form)}, status=400)
    cd = form.cleaned_data

    with transaction.atomic():
        if cd['name']:
            first, _, last = cd['name'].partition(' ')
            user.first_name, user.last_name = first, last
            user.save(update_fields=['first_name', 'last_name'])
        if cd['phone']:
            profile.phone = cd['phone']
            profile.save(update_fields=['phone'])

    logger.info("Profile updated for user %s", user.pk)
    return JsonResponse({"user": profile_dict(user, profile), "message": "Profile updated successfully"})
