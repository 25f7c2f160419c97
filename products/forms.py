# forms.py
from django import forms
from django.core.exceptions import ValidationError
import re
from .models import Product, ProductVariant, Review

# Name validation regex (letters, numbers, spaces, underscores, hyphens)
name_re = re.compile(r'^[a-zA-Z0-9\s_-]+$')


class ProductForm(forms.ModelForm):
    """Admin create/update. Images and variants travel as lists next to the fields."""

    class Meta:
        model = Product
        fields = [
            "name", "description", "sku", "price", "compare_price", "stock",
            "is_active", "is_featured", "category", "brand",
            "shape", "material", "gender", "frame_size",
            "frame_width", "bridge_width", "temple_length", "weight",
        ]

    def clean_name(self):
        name = self.cleaned_data['name'].strip()
        if not name_re.match(name):
            raise ValidationError("Name can contain letters, numbers, spaces, underscores and hyphens only.")
        return name

    def clean(self):
        cleaned_data = super().clean()
        price = cleaned_data.get('price')
        compare_price = cleaned_data.get('compare_price')
        if price and compare_price and compare_price <= price:
            raise ValidationError({'compare_price': "Compare price must be greater than price."})
        return cleaned_data


class VariantForm(forms.ModelForm):
    class Meta:
        model = ProductVariant
        fields = ["color", "color_code", "stock", "price"]


class ReviewForm(forms.ModelForm):
    rating = forms.IntegerField(min_value=1, max_value=5)

    class Meta:
        model = Review
        fields = ["rating", "title", "comment"]


class ProductFilterForm(forms.Form):
    """Query-string filters for the catalog listing. Bad values are dropped, not rejected."""
    search = forms.CharField(required=False)
    category = forms.SlugField(required=False)
    gender = forms.CharField(required=False)
    shape = forms.CharField(required=False)
    material = forms.CharField(required=False)
    minPrice = forms.DecimalField(required=False, min_value=0)
    maxPrice = forms.DecimalField(required=False, min_value=0)
    featured = forms.BooleanField(required=False)
    sale = forms.BooleanField(required=False)
    sort = forms.CharField(required=False)
