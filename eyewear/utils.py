# eyewear/utils.py
import json
from functools import wraps

from django.core.paginator import EmptyPage, Paginator
from django.http import JsonResponse


def api_login_required(view_func):
    """
    Like @login_required, but answers 401 JSON instead of redirecting.
    Used by every endpoint the storefront calls over XHR.
    """
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if request.user.is_authenticated:
            return view_func(request, *args, **kwargs)
        return JsonResponse({"error": "Unauthorized"}, status=401)
    return wrapper


def api_staff_required(view_func):
    """Admin endpoints: 401 for guests, 403 for signed-in non-staff."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse({"error": "Unauthorized"}, status=401)
        if not request.user.is_staff:
            return JsonResponse({"error": "Forbidden"}, status=403)
        return view_func(request, *args, **kwargs)
    return wrapper


def parse_json_body(request):
    """Return the decoded JSON object of a request, or None if it isn't one."""
    try:
        data = json.loads(request.body.decode("utf-8") or "{}")
    except (ValueError, UnicodeDecodeError):
        return None
    return data if isinstance(data, dict) else None


def first_form_error(form):
    """Flatten a bound form's errors to the first human-readable message."""
    for field, errors in form.errors.items():
        if errors:
            if field == "__all__":
                return errors[0]
            return f"{field}: {errors[0]}"
    return "Invalid data"


def get_page_params(request, default_limit=20, max_limit=100):
    """Parse ?page=&limit= the same way on every paginated endpoint."""
    try:
        page = max(1, int(request.GET.get("page") or 1))
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(request.GET.get("limit") or default_limit)
    except (TypeError, ValueError):
        limit = default_limit
    limit = max(1, min(limit, max_limit))
    return page, limit


def paginate(queryset, page, limit):
    """Page a queryset and build the pagination block returned to clients."""
    paginator = Paginator(queryset, limit)
    try:
        page_obj = paginator.page(page)
    except EmptyPage:
        page_obj = paginator.page(paginator.num_pages)
    return list(page_obj.object_list), {
        "page": page_obj.number,
        "limit": limit,
        "total": paginator.count,
        "totalPages": paginator.num_pages if paginator.count else 0,
    }
