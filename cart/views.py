# cart/views.py
import logging
from decimal import Decimal

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.cache import never_cache
from django.views.decorators.http import require_GET, require_POST

from eyewear.utils import parse_json_body, first_form_error
from orders.service import shipping_charge_for
from products.constants import lens_price
from products.models import Product, ProductVariant
from products.utils import money
from .forms import AddToCartForm, CartLineForm
from .storage import SessionStorage
from .store import CartStore, LensOptions

logger = logging.getLogger(__name__)


# ==================== SESSION CART HELPERS ====================

def get_session_cart(request):
    """CartStore bound to this visitor's session under the cart storage key."""
    return CartStore(SessionStorage(request.session), key=settings.CART_STORAGE_KEY)


def _request_data(request):
    """Form posts and JSON bodies are both accepted."""
    if request.content_type == "application/json":
        return parse_json_body(request)
    return request.POST


def cart_payload(cart):
    subtotal = cart.get_total_price()
    shipping = shipping_charge_for(subtotal) if len(cart) else Decimal("0")
    lines = []
    for line in cart.items:
        lens = line.lens_options
        lines.append({
            "id": line.id,
            "productId": line.product_id,
            "variantId": line.variant_id,
            "name": line.name,
            "image": line.image,
            "price": money(line.price),
            "color": line.color,
            "quantity": line.quantity,
            "lensOptions": {
                "lensType": lens.lens_type,
                "lensPackage": lens.lens_package,
                "lensThickness": lens.lens_thickness,
                "prescriptionOption": lens.prescription_option,
                "prescriptionImage": lens.prescription_image,
                "totalLensPrice": money(lens.total_lens_price),
            } if lens else None,
            "unitTotal": money(line.unit_total()),
            "lineTotal": money(line.line_total()),
        })
    return {
        "items": lines,
        "totalItems": cart.get_total_items(),
        "subtotal": money(subtotal),
        "shipping": money(shipping),
        "total": money(subtotal + shipping),
        "freeShippingThreshold": settings.FREE_SHIPPING_THRESHOLD,
        "isOpen": cart.is_open,
    }


# ==================== CART VIEWS ====================

@never_cache
@require_GET
def cart_detail(request):
    return JsonResponse({"success": True, "cart": cart_payload(get_session_cart(request))})


@require_POST
def add_to_cart(request):
    data = _request_data(request)
    if data is None:
        return JsonResponse({"success": False, "message": "Invalid request body"}, status=400)

    form = AddToCartForm(data)
    if not form.is_valid():
        return JsonResponse({"success": False, "message": first_form_error(form)}, status=400)
    cd = form.cleaned_data

    product = Product.objects.filter(id=cd['product_id'], is_active=True).first()
    if product is None:
        return JsonResponse({"success": False, "message": "Product not available"}, status=404)

    # Resolve variant (fall back to the first one when the product has colors)
    variant = None
    if cd.get('variant_id'):
        variant = ProductVariant.objects.filter(id=cd['variant_id'], product=product).first()
        if variant is None:
            return JsonResponse({"success": False, "message": "Invalid variant for this product"}, status=400)
    elif product.variants.exists():
        variant = product.variants.order_by('id').first()

    stock = variant.stock if variant else product.stock
    if stock <= 0:
        return JsonResponse({
            "success": False,
            "error": "OUT_OF_STOCK",
            "message": "This item is currently out of stock.",
        }, status=409)

    lens_options = None
    if cd.get('lens_type'):
        lens_options = LensOptions(
            lens_type=cd['lens_type'],
            lens_package=cd['lens_package'],
            prescription_option=cd['prescription_option'],
            lens_thickness=cd['lens_thickness'],
            total_lens_price=lens_price(cd['lens_type'], cd['lens_package'], cd['lens_thickness']),
            prescription_image=cd.get('prescription_image') or None,
        )

    cart = get_session_cart(request)
    key = (
        str(product.id),
        str(variant.id) if variant else None,
        lens_options.lens_type if lens_options else None,
        lens_options.lens_package if lens_options else None,
        lens_options.lens_thickness if lens_options else None,
    )
    in_cart = sum(line.quantity for line in cart.items if line.merge_key() == key)
    cap = min(stock, settings.MAX_QTY_PER_LINE)
    qty = min(cd['quantity'], cap - in_cart)
    if qty <= 0:
        return JsonResponse({
            "success": False,
            "message": f"You can add at most {cap} of this item.",
            "cart_count": cart.get_total_items(),
        }, status=400)

    line = cart.add_item(
        product_id=product.id,
        variant_id=variant.id if variant else None,
        name=product.name,
        image=product.primary_image_url,
        price=variant.effective_price() if variant else product.price,
        quantity=qty,
        color=variant.color if variant else None,
        lens_options=lens_options,
    )
    logger.debug("Cart line %s now qty %s", line.id, line.quantity)

    return JsonResponse({
        "success": True,
        "message": "Added to cart",
        "cart_count": cart.get_total_items(),
        "cart": cart_payload(cart),
    })


def _line_stock(product_id, variant_id):
    """Stock behind a cart line, or None when the product is gone."""
    try:
        if variant_id:
            variant = ProductVariant.objects.filter(
                id=int(variant_id), product_id=int(product_id), product__is_active=True,
            ).first()
            return variant.stock if variant else None
        product = Product.objects.filter(id=int(product_id), is_active=True).first()
    except (TypeError, ValueError):
        return None
    return product.stock if product else None


@require_POST
def update_cart_qty(request):
    data = _request_data(request)
    if data is None:
        return JsonResponse({"success": False, "message": "Invalid request body"}, status=400)
    form = CartLineForm(data)
    if not form.is_valid() or form.cleaned_data.get('quantity') is None:
        return JsonResponse({"success": False, "message": "product_id and quantity are required"}, status=400)
    cd = form.cleaned_data

    qty = cd['quantity']
    if qty > 0:
        stock = _line_stock(cd['product_id'], cd['variant_id'])
        cap = settings.MAX_QTY_PER_LINE if stock is None else min(stock, settings.MAX_QTY_PER_LINE)
        if cap <= 0:
            return JsonResponse({
                "success": False,
                "error": "OUT_OF_STOCK",
                "message": "This item is currently out of stock.",
            }, status=409)
        qty = min(qty, cap)

    cart = get_session_cart(request)
    cart.update_quantity(cd['product_id'], cd['variant_id'], qty, lens_type=cd['lens_type'])
    return JsonResponse({"success": True, "cart_count": cart.get_total_items(), "cart": cart_payload(cart)})


@require_POST
def remove_from_cart(request):
    data = _request_data(request)
    if data is None:
        return JsonResponse({"success": False, "message": "Invalid request body"}, status=400)
    form = CartLineForm(data)
    if not form.is_valid():
        return JsonResponse({"success": False, "message": first_form_error(form)}, status=400)
    cd = form.cleaned_data

    cart = get_session_cart(request)
    cart.remove_item(cd['product_id'], cd['variant_id'], lens_type=cd['lens_type'])
    return JsonResponse({
        "success": True,
        "message": "Removed from cart",
        "cart_count": cart.get_total_items(),
        "cart": cart_payload(cart),
    })


@require_POST
def empty_cart(request):
    cart = get_session_cart(request)
    cart.clear_cart()
    return JsonResponse({"success": True, "message": "Cart emptied", "cart_count": 0, "cart": cart_payload(cart)})


@require_POST
def toggle_cart(request):
    data = _request_data(request)
    if data is None:
        return JsonResponse({"success": False, "message": "Invalid request body"}, status=400)
    cart = get_session_cart(request)
    action = str(data.get('action') or '').lower()
    if action == 'open':
        cart.open_cart()
    elif action == 'close':
        cart.close_cart()
    else:
        cart.toggle_cart()
    return JsonResponse({"success": True, "isOpen": cart.is_open})
