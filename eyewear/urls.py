"""
URL configuration for the eyewear storefront.

Every storefront route answers JSON. The Django admin lives under
django-admin/ so that admin/ is free for the staff JSON API.
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('django-admin/', admin.site.urls),
    path('admin/', include('admin_side.urls')),
    path('categories/', include('category.urls')),
    path('products/', include('products.urls')),
    path('cart/', include('cart.urls')),
    path('payment/', include('payments.urls')),
    path('user/', include('user.urls')),
    path('orders/', include('orders.urls')),
    path('coupons/', include('coupons.urls')),
    path('wishlist/', include('wishlist.urls', namespace='wishlist')),
    path('banners/', include('banner.urls')),
]
