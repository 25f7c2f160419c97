from decimal import Decimal


def money(value):
    """Decimal -> float for JSON bodies; None stays None."""
    if value is None:
        return None
    return float(Decimal(value).quantize(Decimal("0.01")))


def product_card(product):
    """Compact product dict used by listings, wishlist and suggestions."""
    return {
        "id": str(product.id),
        "name": product.name,
        "slug": product.slug,
        "price": money(product.price),
        "comparePrice": money(product.compare_price),
        "stock": product.stock,
        "image": product.primary_image_url,
    }


def product_detail(product):
    card = product_card(product)
    card.update({
        "description": product.description or "",
        "sku": product.sku,
        "isFeatured": product.is_featured,
        "discountPercent": product.get_discount_percent(),
        "category": (
            {"id": product.category.id, "name": product.category.name, "slug": product.category.slug}
            if product.category else None
        ),
        "brand": {"id": product.brand.id, "name": product.brand.name} if product.brand else None,
        "attributes": {
            "shape": product.shape,
            "material": product.material,
            "gender": product.gender,
            "frameSize": product.frame_size,
            "frameWidth": product.frame_width,
            "bridgeWidth": product.bridge_width,
            "templeLength": product.temple_length,
            "weight": product.weight,
        },
        "images": [{"url": img.url, "position": img.position} for img in product.images.all()],
        "variants": [
            {
                "id": str(v.id),
                "color": v.color,
                "colorCode": v.color_code,
                "stock": v.stock,
                "price": money(v.effective_price()),
            }
            for v in product.variants.all()
        ],
        "rating": product.rating_summary(),
    })
    return card


def review_dict(review):
    return {
        "id": review.id,
        "rating": review.rating,
        "title": review.title,
        "comment": review.comment,
        "isVerified": review.is_verified,
        "user": review.user.get_full_name() or review.user.username,
        "createdAt": review.created_at.isoformat(),
    }
