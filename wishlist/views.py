import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from eyewear.utils import api_login_required, parse_json_body, get_page_params, paginate
from products.models import Product
from products.utils import product_card
from .models import WishlistItem

logger = logging.getLogger(__name__)


@csrf_exempt
@api_login_required
@require_http_methods(["GET", "POST"])
def wishlist_api(request):
    """
    GET  -> the signed-in user's wishlist, newest first, paginated.
    POST -> toggle {"productId": ...}: remove if present, add otherwise.
    """
    if request.method == "GET":
        page, limit = get_page_params(request, default_limit=20)
        items = (
            WishlistItem.objects
            .filter(user=request.user)
            .select_related('product')
            .prefetch_related('product__images')
        )
        rows, pagination = paginate(items, page, limit)
        return JsonResponse({
            "items": [
                {
                    "id": str(item.id),
                    "addedAt": item.created_at.isoformat(),
                    "product": product_card(item.product),
                }
                for item in rows
            ],
            "pagination": pagination,
        })

    payload = parse_json_body(request)
    product_id = payload.get("productId") if payload else None
    if not product_id or not str(product_id).isdigit():
        return JsonResponse({"error": "Invalid product"}, status=400)

    product = Product.objects.filter(pk=int(product_id)).first()
    if product is None:
        return JsonResponse({"error": "Product not found"}, status=404)

    deleted, _ = WishlistItem.objects.filter(user=request.user, product=product).delete()
    if deleted:
        logger.info("User %s removed product %s from wishlist", request.user.pk, product.pk)
        return JsonResponse({
            'success': True,
            'action': 'removed',
            'message': 'Removed from wishlist',
            'in_wishlist': False,
        })

    WishlistItem.objects.get_or_create(user=request.user, product=product)
    logger.info("User %s added product %s to wishlist", request.user.pk, product.pk)
    return JsonResponse({
        'success': True,
        'action': 'added',
        'message': 'Added to wishlist',
        'in_wishlist': True,
    })


@api_login_required
@require_http_methods(["GET"])
def check_wishlist(request, product_id):
    """Initial heart-icon state for a product page."""
    in_wishlist = WishlistItem.objects.filter(user=request.user, product_id=product_id).exists()
    return JsonResponse({'success': True, 'in_wishlist': in_wishlist})
