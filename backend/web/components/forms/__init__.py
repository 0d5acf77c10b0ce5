"""
Form components for RADAR.

Provides basic building blocks such as FormField and SubmitButton plus the
login and PIN reset forms.
"""

from .fields import FormField, TextInputField, PinInputField
from .submit import SubmitButton
from .login_form import LoginForm
from .reset_pin_form import ResetPinForm

__all__ = [
    "FormField",
    "TextInputField",
    "PinInputField",
    "SubmitButton",
    "LoginForm",
    "ResetPinForm",
]
