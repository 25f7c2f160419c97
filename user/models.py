from django.conf import settings
from django.core.validators import RegexValidator, MinLengthValidator
from django.db import models

phone_validator = RegexValidator(r'^[6-9]\d{9}$', "Invalid phone number")
pincode_validator = RegexValidator(r'^[1-9][0-9]{5}$', "Invalid pincode")


class AddressType(models.TextChoices):
    HOME = 'HOME', 'Home'
    OFFICE = 'OFFICE', 'Office'
    OTHER = 'OTHER', 'Other'


class Address(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='addresses')
    name = models.CharField(max_length=120, validators=[MinLengthValidator(2)])
    phone = models.CharField(max_length=10, validators=[phone_validator])
    address = models.CharField(max_length=255, validators=[MinLengthValidator(10, "Enter complete address")])
    landmark = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=120, validators=[MinLengthValidator(2)])
    state = models.CharField(max_length=120, validators=[MinLengthValidator(2)])
    pincode = models.CharField(max_length=6, validators=[pincode_validator])
    type = models.CharField(max_length=10, choices=AddressType.choices, default=AddressType.HOME)
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ('-is_default', '-created_at',)

    def __str__(self):
        return f'{self.name} - {self.city}'

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "landmark": self.landmark,
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
            "type": self.type,
            "isDefault": self.is_default,
        }


class Profile(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='profile')
    phone = models.CharField(max_length=10, blank=True, validators=[phone_validator])

    def __str__(self):
        return f'Profile of {self.user}'
