# coupons/forms.py
from django import forms
from .models import Coupon


class CouponForm(forms.ModelForm):
    class Meta:
        model = Coupon
        fields = [
            'code',
            'description',
            'discount_type',
            'discount_value',
            'min_purchase',
            'max_discount',
            'usage_limit',
            'start_date',
            'end_date',
            'is_active',
        ]

    def clean_code(self):
        code = (self.cleaned_data.get('code') or '').strip().upper()
        if len(code) < 3:
            raise forms.ValidationError("Code must be at least 3 characters.")
        qs = Coupon.objects.filter(code=code)
        if self.instance.pk:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise forms.ValidationError("A coupon with this code already exists")
        return code


class CouponValidateForm(forms.Form):
    code = forms.CharField(max_length=20)
    subtotal = forms.DecimalField(min_value=0, max_digits=12, decimal_places=2)
