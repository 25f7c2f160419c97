from django.urls import path
from category import views

urlpatterns = [
    path('', views.category_list, name='category_list'),
    path('brands/', views.brand_list, name='brand_list'),
]
