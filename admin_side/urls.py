from django.urls import path

from banner import views as banner_views
from coupons import views as coupon_views
from orders import views as order_views
from products import views as product_views
from . import views

urlpatterns = [
    path('notifications/', views.admin_notifications, name='admin_notifications'),
    path('dashboard/', views.admin_dashboard, name='admin_dashboard'),

    path('users/', views.admin_user_list, name='admin_users'),
    path('users/<int:user_id>/role/', views.admin_user_role, name='admin_user_role'),

    path('products/', product_views.admin_product_list, name='admin_products'),
    path('products/<int:product_id>/', product_views.admin_product_detail, name='admin_product_detail'),

    path('coupons/', coupon_views.admin_coupons, name='admin_coupons'),
    path('coupons/<int:coupon_id>/', coupon_views.admin_coupon_detail, name='admin_coupon_detail'),

    path('banners/', banner_views.admin_banners, name='admin_banners'),
    path('banners/<int:pk>/', banner_views.admin_banner_detail, name='admin_banner_detail'),

    path('orders/', order_views.admin_order_list, name='admin_orders'),
    path('orders/<int:pk>/', order_views.admin_order_detail, name='admin_order_detail'),
    path('orders/<int:pk>/status/', order_views.admin_order_status, name='admin_order_status'),
    path('orders/<int:pk>/refund/', order_views.admin_order_refund, name='admin_order_refund'),
]
