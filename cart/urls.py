from django.urls import path
from . import views

urlpatterns = [
    path('', views.cart_detail, name='cart_detail'),
    path('add/', views.add_to_cart, name='add_to_cart'),
    path('update-qty/', views.update_cart_qty, name='update_cart_qty'),
    path('remove/', views.remove_from_cart, name='remove_from_cart'),
    path('empty/', views.empty_cart, name='empty_cart'),
    path('toggle/', views.toggle_cart, name='toggle_cart'),
]
