# products/urls.py
from django.urls import path
from . import views

urlpatterns = [
    path("", views.product_list, name="product_list"),
    path("search/suggestions/", views.search_suggestions, name="search_suggestions"),
    path("<slug:slug>/", views.product_detail_view, name="product_detail"),
    path("<slug:slug>/reviews/", views.product_reviews, name="product_reviews"),
]
