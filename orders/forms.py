from django import forms
from .models import OrderStatus, PaymentMethod


class PlaceOrderForm(forms.Form):
    addressId = forms.IntegerField(min_value=1)
    paymentMethod = forms.ChoiceField(choices=PaymentMethod.choices)
    couponCode = forms.CharField(max_length=20, required=False)
    notes = forms.CharField(max_length=500, required=False)


class OrderStatusForm(forms.Form):
    status = forms.ChoiceField(choices=OrderStatus.choices)
