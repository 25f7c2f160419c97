from django.db.models import Count, Q
from django.http import JsonResponse
from django.views.decorators.http import require_GET

from .models import Brand, Category


@require_GET
def category_list(request):
    """Active categories with the number of active products in each."""
    categories = (
        Category.objects.filter(is_active=True)
        .annotate(product_count=Count('products', filter=Q(products__is_active=True)))
        .order_by('name')
    )
    return JsonResponse({
        "categories": [
            {
                "id": c.id,
                "name": c.name,
                "slug": c.slug,
                "description": c.description or "",
                "image": c.image_url or None,
                "productCount": c.product_count,
            }
            for c in categories
        ]
    })


@require_GET
def brand_list(request):
    return JsonResponse({
        "brands": [{"id": b.id, "name": b.name, "slug": b.slug} for b in Brand.objects.all()]
    })
