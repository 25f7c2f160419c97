# products/views.py
import logging

from django.core.exceptions import ValidationError
from django.core.validators import URLValidator
from django.db import IntegrityError, transaction
from django.db.models import Avg, Count, FloatField, IntegerField, Q, Sum, Value, Prefetch
from django.db.models.functions import Coalesce
from django.forms.models import model_to_dict
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.cache import never_cache
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods

from eyewear.utils import (
    api_login_required, api_staff_required, parse_json_body,
    first_form_error, get_page_params, paginate,
)
from .constants import SORT_OPTIONS
from .forms import ProductForm, VariantForm, ReviewForm, ProductFilterForm
from .models import Product, ProductImage, ProductVariant, Review
from .utils import product_card, product_detail, review_dict

logger = logging.getLogger(__name__)

_url_validator = URLValidator()


def _listed_products():
    return (
        Product.objects
        .filter(is_active=True)
        .select_related('brand', 'category')
        .prefetch_related(Prefetch('images', queryset=ProductImage.objects.order_by('position', 'id'), to_attr='prefetched_images'))
    )


""" .......................................................Catalog..................................... """

@never_cache
@require_GET
def product_list(request):
    form = ProductFilterForm(request.GET)
    form.is_valid()
    # invalid values are dropped from cleaned_data
    f = form.cleaned_data
    page, limit = get_page_params(request, default_limit=12, max_limit=60)

    products = _listed_products()

    # 1) text search
    search = (f.get('search') or '').strip()
    if search:
        products = products.filter(Q(name__icontains=search) | Q(description__icontains=search))

    # 2) facet filters
    if f.get('category'):
        products = products.filter(category__slug=f['category'])
    if f.get('gender'):
        products = products.filter(gender=f['gender'].upper())
    if f.get('shape'):
        products = products.filter(shape=f['shape'].upper())
    if f.get('material'):
        products = products.filter(material=f['material'].upper())

    # 3) price window
    if f.get('minPrice') is not None:
        products = products.filter(price__gte=f['minPrice'])
    if f.get('maxPrice') is not None:
        products = products.filter(price__lte=f['maxPrice'])

    if f.get('featured'):
        products = products.filter(is_featured=True)
    if f.get('sale'):
        products = products.filter(compare_price__isnull=False)

    # Sorting
    sort_key = f.get('sort') if f.get('sort') in SORT_OPTIONS else 'newest'
    if sort_key == 'popular':
        products = products.annotate(sold=Coalesce(Sum('order_items__quantity'), Value(0), output_field=IntegerField()))
    elif sort_key == 'rating':
        products = products.annotate(avg_rating=Coalesce(Avg('reviews__rating'), Value(0.0), output_field=FloatField()))
    sort_map = {
        'newest': ('-created_at', '-id'),
        'price_asc': ('price', 'id'),
        'price_desc': ('-price', '-id'),
        'popular': ('-sold', '-created_at'),
        'rating': ('-avg_rating', '-created_at'),
    }
    products = products.order_by(*sort_map[sort_key])

    rows, pagination = paginate(products, page, limit)
    items = []
    for product in rows:
        card = product_card(product)
        card.update({
            "shape": product.shape,
            "material": product.material,
            "gender": product.gender,
            "category": product.category.name if product.category else None,
            "brand": product.brand.name if product.brand else None,
            "isFeatured": product.is_featured,
        })
        items.append(card)

    return JsonResponse({"products": items, "pagination": pagination})


@require_GET
def product_detail_view(request, slug):
    product = get_object_or_404(
        Product.objects.select_related('brand', 'category').prefetch_related('images', 'variants'),
        slug=slug, is_active=True,
    )
    data = product_detail(product)

    related = Product.objects.none()
    if product.category_id:
        related = _listed_products().filter(category_id=product.category_id).exclude(pk=product.pk)[:4]
    data["related"] = [product_card(p) for p in related]

    return JsonResponse({"product": data})


@require_GET
def search_suggestions(request):
    q = (request.GET.get('q') or '').strip()
    if len(q) < 2:
        return JsonResponse({"suggestions": []})

    matches = (
        _listed_products()
        .filter(Q(name__icontains=q) | Q(category__name__icontains=q) | Q(brand__name__icontains=q))
        .order_by('name')[:5]
    )
    return JsonResponse({
        "suggestions": [
            {"id": str(p.id), "name": p.name, "slug": p.slug, "price": product_card(p)["price"], "image": p.primary_image_url}
            for p in matches
        ]
    })


""" .......................................................Reviews..................................... """

def _has_delivered_purchase(user, product):
    from orders.models import OrderItem, OrderStatus
    return OrderItem.objects.filter(
        order__user=user, order__status=OrderStatus.DELIVERED, product=product,
    ).exists()


@csrf_exempt
@require_http_methods(["GET", "POST"])
def product_reviews(request, slug):
    product = get_object_or_404(Product, slug=slug, is_active=True)

    if request.method == "GET":
        page, limit = get_page_params(request, default_limit=10, max_limit=50)
        rows, pagination = paginate(product.reviews.select_related('user'), page, limit)
        return JsonResponse({
            "reviews": [review_dict(r) for r in rows],
            "summary": product.rating_summary(),
            "pagination": pagination,
        })

    if not request.user.is_authenticated:
        return JsonResponse({"error": "Unauthorized"}, status=401)

    payload = parse_json_body(request)
    if payload is None:
        return JsonResponse({"error": "Invalid request body"}, status=400)

    # one review per user and product; resubmitting edits it
    existing = Review.objects.filter(user=request.user, product=product).first()
    form = ReviewForm(payload, instance=existing)
    if not form.is_valid():
        return JsonResponse({"error": first_form_error(form)}, status=400)

    review = form.save(commit=False)
    review.user = request.user
    review.product = product
    review.is_verified = _has_delivered_purchase(request.user, product)
    review.save()
    logger.info("Review %s by user %s on product %s (verified=%s)",
                "updated" if existing else "created", request.user.pk, product.pk, review.is_verified)

    return JsonResponse({"review": review_dict(review)}, status=200 if existing else 201)


""" .......................................................Admin: Products..................................... """

_ADMIN_FIELD_MAP = {
    "name": "name",
    "description": "description",
    "sku": "sku",
    "price": "price",
    "comparePrice": "compare_price",
    "stock": "stock",
    "isActive": "is_active",
    "isFeatured": "is_featured",
    "categoryId": "category",
    "brandId": "brand",
    "shape": "shape",
    "material": "material",
    "gender": "gender",
    "frameSize": "frame_size",
    "frameWidth": "frame_width",
    "bridgeWidth": "bridge_width",
    "templeLength": "temple_length",
    "weight": "weight",
}


def _form_data(payload, instance=None):
    """Map a camelCase admin payload onto ProductForm fields, keeping current values for omitted keys."""
    data = model_to_dict(instance, fields=ProductForm.Meta.fields) if instance else {
        "is_active": True, "is_featured": False, "stock": 0, "gender": "UNISEX", "frame_size": "MEDIUM",
    }
    for key, field in _ADMIN_FIELD_MAP.items():
        if key in payload:
            data[field] = payload[key]
    return data


def _save_images_and_variants(product, payload):
    images = payload.get("images")
    if images is not None:
        if not isinstance(images, list):
            raise ValueError("images must be a list of URLs")
        product.images.all().delete()
        for position, url in enumerate(images):
            try:
                _url_validator(url)
            except ValidationError:
                raise ValueError(f"Invalid image URL: {url}")
            ProductImage.objects.create(product=product, url=url, position=position)

    variants = payload.get("variants")
    if variants is not None:
        if not isinstance(variants, list):
            raise ValueError("variants must be a list")
        product.variants.all().delete()
        for idx, raw in enumerate(variants):
            vform = VariantForm({
                "color": raw.get("color"),
                "color_code": raw.get("colorCode"),
                "stock": raw.get("stock", 0),
                "price": raw.get("price"),
            })
            if not vform.is_valid():
                raise ValueError(f"Variant {idx + 1}: {first_form_error(vform)}")
            variant = vform.save(commit=False)
            variant.product = product
            variant.save()


def _admin_product_dict(product):
    data = product_detail(product)
    data.update({"isActive": product.is_active, "createdAt": product.created_at.isoformat()})
    return data


@csrf_exempt
@api_staff_required
@require_http_methods(["GET", "POST"])
def admin_product_list(request):
    if request.method == "GET":
        page, limit = get_page_params(request)
        qs = Product.objects.select_related('brand', 'category').annotate(review_count=Count('reviews'))
        search = (request.GET.get('search') or '').strip()
        if search:
            qs = qs.filter(Q(name__icontains=search) | Q(sku__icontains=search))
        rows, pagination = paginate(qs.order_by('-created_at'), page, limit)
        return JsonResponse({
            "products": [
                dict(product_card(p), isActive=p.is_active, sku=p.sku,
                     category=p.category.name if p.category else None, reviewCount=p.review_count)
                for p in rows
            ],
            "pagination": pagination,
        })

    payload = parse_json_body(request)
    if payload is None:
        return JsonResponse({"error": "Invalid request body"}, status=400)

    form = ProductForm(_form_data(payload))
    if not form.is_valid():
        return JsonResponse({"error": first_form_error(form)}, status=400)

    try:
        with transaction.atomic():
            product = form.save()
            _save_images_and_variants(product, payload)
    except ValueError as e:
        return JsonResponse({"error": str(e)}, status=400)
    except IntegrityError:
        return JsonResponse({"error": "Duplicate variant color"}, status=400)

    logger.info("Product %s created by %s", product.pk, request.user.pk)
    return JsonResponse({"product": _admin_product_dict(product)}, status=201)


@csrf_exempt
@api_staff_required
@require_http_methods(["GET", "PUT", "DELETE"])
def admin_product_detail(request, product_id):
    product = Product.objects.filter(pk=product_id).first()
    if product is None:
        return JsonResponse({"error": "Product not found"}, status=404)

    if request.method == "GET":
        return JsonResponse({"product": _admin_product_dict(product)})

    if request.method == "DELETE":
        product.delete()
        logger.info("Product %s deleted by %s", product_id, request.user.pk)
        return JsonResponse({"success": True})

    payload = parse_json_body(request)
    if payload is None:
        return JsonResponse({"error": "Invalid request body"}, status=400)

    form = ProductForm(_form_data(payload, product), instance=product)
    if not form.is_valid():
        return JsonResponse({"error": first_form_error(form)}, status=400)

    try:
        with transaction.atomic():
            product = form.save()
            _save_images_and_variants(product, payload)
    except ValueError as e:
        return JsonResponse({"error": str(e)}, status=400)
    except IntegrityError:
        return JsonResponse({"error": "Duplicate variant color"}, status=400)

    return JsonResponse({"product": _admin_product_dict(product)})
