from django.urls import path
from . import views
app_name = 'wishlist'

urlpatterns = [
    path('', views.wishlist_api, name='list'),
    path('check/<int:product_id>/', views.check_wishlist, name='check'),
]
