"""
Form field components.

These small components keep markup consistent across forms.
"""

from typing import Optional

from ..base import Component


class FormField(Component):
    """Wrapper that renders label, input slot, help, and error text."""

    def __init__(
        self,
        field_id: str,
        label: str,
        *,
        required: bool = False,
        help_text: Optional[str] = None,
        error_text: Optional[str] = None,
        state: str = "default",
    ) -> None:
        self.field_id = field_id
        self.label = label
        self.required = required
        self.help_text = help_text
        self.error_text = error_text
        self.state = state

    def render(self, input_html: str) -> str:
        state_class = f" form-field--{self.state}" if self.state != "default" else ""
        required_marker = (
            '<span class="form-required" aria-hidden="true">*</span>'
            if self.required
            else ""
        )
        help_html = (
            f'<p class="form-help" id="{self.field_id}-help">{self.escape(self.help_text)}</p>'
            if self.help_text
            else ""
        )
        error_html = (
            f'<p class="form-error" role="alert" id="{self.field_id}-error">{self.escape(self.error_text)}</p>'
            if self.error_text
            else ""
        )

        label_attrs = self.attributes(
            for_=self.field_id,
            class_="form-label",
        )

        return (
            f'<div class="form-field{state_class}">'
            f"<label {label_attrs}>"
            f"{self.escape(self.label)}{required_marker}"
            "</label>"
            f"{input_html}"
            f"{help_html}"
            f"{error_html}"
            "</div>"
        )


class TextInputField(FormField):
    """Single-line input (text, email, password) with consistent wrapper."""

    def render(
        self,
        *,
        value: str = "",
        input_type: str = "text",
        autocomplete: Optional[str] = None,
        placeholder: Optional[str] = None,
        **attrs: str,
    ) -> str:
        input_attrs = self.attributes(
            id=self.field_id,
            name=self.field_id,
            type=input_type,
            value=value,
            autocomplete=autocomplete,
            placeholder=placeholder,
            required=self.required,
            aria_describedby=f"{self.field_id}-help" if self.help_text else None,
            aria_invalid="true" if self.error_text else "false",
            **attrs,
        )
        input_html = f"<input {input_attrs}>"
        return super().render(input_html)


class PinInputField(FormField):
    """Masked 4-digit PIN input.

    The typed value is never echoed back into the markup, so a failed attempt
    does not leak the PIN into the re-rendered page.
    """

    def render(self, *, disabled: bool = False, autofocus: bool = True) -> str:
        input_attrs = self.attributes(
            id=self.field_id,
            name=self.field_id,
            type="password",
            inputmode="numeric",
            pattern="[0-9]{4}",
            maxlength="4",
            autocomplete="one-time-code",
            placeholder="••••",
            required=self.required,
            disabled=disabled,
            autofocus=autofocus,
            aria_describedby=f"{self.field_id}-error" if self.error_text else None,
            aria_invalid="true" if self.error_text else "false",
        )
        input_html = f'<input {input_attrs} class="pin-input">'
        return super().render(input_html)
