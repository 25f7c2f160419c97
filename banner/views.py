# banner/views.py
import logging

from django.db.models import Q
from django.forms.models import model_to_dict
from django.http import JsonResponse
from django.views.decorators.cache import never_cache
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods

from eyewear.utils import api_staff_required, parse_json_body, first_form_error
from .forms import BannerForm
from .models import Banner

logger = logging.getLogger(__name__)

_FIELD_MAP = {
    "title": "title",
    "subtitle": "subtitle",
    "image": "image_url",
    "link": "link",
    "position": "position",
    "isActive": "is_active",
}


def _form_data(payload, instance=None):
    data = model_to_dict(instance, fields=BannerForm.Meta.fields) if instance else {"is_active": True, "position": 0}
    for key, field in _FIELD_MAP.items():
        if key in payload:
            data[field] = payload[key]
    return data


@require_GET
def active_banners(request):
    banners = Banner.objects.filter(is_active=True).order_by('position', '-created_at')
    return JsonResponse({"banners": [b.to_dict() for b in banners]})


@csrf_exempt
@never_cache
@api_staff_required
@require_http_methods(["GET", "POST"])
def admin_banners(request):
    if request.method == "GET":
        q = request.GET.get("q", "")
        status = request.GET.get("status", "all")
        banners = Banner.objects.all()
        if q:
            banners = banners.filter(Q(title__icontains=q) | Q(subtitle__icontains=q))
        if status == "active":
            banners = banners.filter(is_active=True)
        elif status == "inactive":
            banners = banners.filter(is_active=False)
        return JsonResponse({"banners": [b.to_dict() for b in banners]})

    payload = parse_json_body(request)
    if payload is None:
        return JsonResponse({"error": "Invalid request body"}, status=400)
    form = BannerForm(_form_data(payload))
    if not form.is_valid():
        return JsonResponse({"error": first_form_error(form)}, status=400)
    banner = form.save()
    logger.info("Banner %s created", banner.pk)
    return JsonResponse({"banner": banner.to_dict()}, status=201)


@csrf_exempt
@never_cache
@api_staff_required
@require_http_methods(["GET", "PUT", "DELETE"])
def admin_banner_detail(request, pk):
    banner = Banner.objects.filter(pk=pk).first()
    if banner is None:
        return JsonResponse({"error": "Banner not found"}, status=404)

    if request.method == "GET":
        return JsonResponse({"banner": banner.to_dict()})

    if request.method == "DELETE":
        banner.delete()
        logger.info("Banner %s deleted", pk)
        return JsonResponse({"success": True})

    payload = parse_json_body(request)
    if payload is None:
        return JsonResponse({"error": "Invalid request body"}, status=400)
    form = BannerForm(_form_data(payload, banner), instance=banner)
    if not form.is_valid():
        return JsonResponse({"error": first_form_error(form)}, status=400)
    banner = form.save()
    return JsonResponse({"banner": banner.to_dict()})
