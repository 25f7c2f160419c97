from django import forms
from django.core.exceptions import ValidationError

from products.constants import (
    LENS_TYPES, LENS_PACKAGES, LENS_THICKNESS, PRESCRIPTION_OPTIONS, choices_of,
)


class AddToCartForm(forms.Form):
    product_id = forms.IntegerField(min_value=1)
    variant_id = forms.IntegerField(min_value=1, required=False)
    quantity = forms.IntegerField(required=False)

    # lens add-on (all optional; frame-only when lens_type is empty)
    lens_type = forms.ChoiceField(choices=choices_of(LENS_TYPES), required=False)
    lens_package = forms.ChoiceField(choices=choices_of(LENS_PACKAGES), required=False)
    lens_thickness = forms.ChoiceField(choices=choices_of(LENS_THICKNESS), required=False)
    prescription_option = forms.ChoiceField(choices=choices_of(PRESCRIPTION_OPTIONS), required=False)
    prescription_image = forms.URLField(required=False)

    def clean_quantity(self):
        qty = self.cleaned_data.get('quantity')
        return max(1, qty or 1)

    def clean(self):
        cleaned_data = super().clean()
        lens_type = cleaned_data.get('lens_type')
        if not lens_type:
            if cleaned_data.get('lens_package') or cleaned_data.get('lens_thickness'):
                raise ValidationError("Choose a lens type before a lens package or thickness.")
            return cleaned_data

        cleaned_data['lens_package'] = cleaned_data.get('lens_package') or 'classic'
        cleaned_data['lens_thickness'] = cleaned_data.get('lens_thickness') or 'standard'
        cleaned_data['prescription_option'] = cleaned_data.get('prescription_option') or 'later'
        if cleaned_data['prescription_option'] == 'upload' and not cleaned_data.get('prescription_image'):
            raise ValidationError({'prescription_image': "Upload your prescription or choose to send it later."})
        return cleaned_data


class CartLineForm(forms.Form):
    """Identifies the line(s) for update-qty / remove."""
    product_id = forms.CharField(max_length=64)
    variant_id = forms.CharField(max_length=64, required=False)
    lens_type = forms.CharField(max_length=32, required=False)
    quantity = forms.IntegerField(required=False)

    def clean_variant_id(self):
        return self.cleaned_data.get('variant_id') or None

    def clean_lens_type(self):
        return self.cleaned_data.get('lens_type') or None
