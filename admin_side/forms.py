from django import forms

ROLE_CHOICES = [("USER", "User"), ("ADMIN", "Admin")]


class UserRoleForm(forms.Form):
    role = forms.ChoiceField(choices=ROLE_CHOICES, error_messages={
        'required': "Role is required",
        'invalid_choice': "Role must be USER or ADMIN",
    })
