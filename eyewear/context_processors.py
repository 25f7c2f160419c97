from category.models import Category
from wishlist.models import WishlistItem
from cart.views import get_session_cart


def global_categories(request):
    """Make categories available to all templates"""
    return {
        'categories': Category.objects.filter(is_active=True).order_by('name')
    }


def header_counts(request):
    cart_count = get_session_cart(request).get_total_items()

    wishlist_count = 0
    user = getattr(request, "user", None)
    if user and user.is_authenticated:
        wishlist_count = WishlistItem.objects.filter(user=user).count()

    return {
        "cart_count": cart_count,
        "wishlist_count": wishlist_count,
    }
