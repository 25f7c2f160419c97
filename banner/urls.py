# banner/urls.py
from django.urls import path
from . import views

urlpatterns = [
    path('', views.active_banners, name='banner_list'),
]
