# forms.py
from django import forms
from .models import Address, phone_validator


class AddressForm(forms.ModelForm):
    class Meta:
        model = Address
        fields = ['name', 'phone', 'address', 'landmark', 'city', 'state', 'pincode', 'type', 'is_default']

    def clean_phone(self):
        return self.cleaned_data['phone'].strip()

    def clean_pincode(self):
        return self.cleaned_data['pincode'].strip()


class ProfileForm(forms.Form):
    """Name and phone; blank values leave the stored field alone."""
    name = forms.CharField(max_length=150, required=False, min_length=2,
                           error_messages={'min_length': "Name must be at least 2 characters"})
    phone = forms.CharField(max_length=10, required=False, validators=[phone_validator])

    def clean_name(self):
        return ' '.join(self.cleaned_data['name'].split())

    def clean_phone(self):
        return self.cleaned_data['phone'].strip()
