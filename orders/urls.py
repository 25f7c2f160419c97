# orders/urls.py
from django.urls import path
from . import views

urlpatterns = [
    path('', views.orders_api, name='orders'),
    path('<int:pk>/', views.order_detail, name='order_detail'),
    path('<int:pk>/cancel/', views.cancel_order_view, name='order_cancel'),
]
