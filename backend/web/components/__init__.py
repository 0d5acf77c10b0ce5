# RADAR Component System
# Pure Python Components for type-safe HTML generation

from .base import Component
from .layout import Layout, Toasts
from .navigation import Navigation
from .pin_modal import PinModal
from .skeletons import DashboardSkeleton, LoadingScreen
from .forms import FormField, TextInputField, PinInputField, SubmitButton, LoginForm, ResetPinForm

__all__ = [
    "Component",
    "Layout",
    "Toasts",
    "Navigation",
    "PinModal",
    "DashboardSkeleton",
    "LoadingScreen",
    "FormField",
    "TextInputField",
    "PinInputField",
    "SubmitButton",
    "LoginForm",
    "ResetPinForm",
]
