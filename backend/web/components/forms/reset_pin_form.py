"""
Reset PIN Form Component

Target of the e-mailed reset link (`/reset-pin?email=...&otp=...`).
"""
from typing import Optional
from components.base import Component
from .fields import PinInputField, TextInputField
from .submit import SubmitButton


class ResetPinForm(Component):
    def __init__(self, *, email: str = "", otp: str = "", error: Optional[str] = None):
        self.email = email
        self.otp = otp
        self.error = error

    def render(self) -> str:
        email_field = TextInputField("email", "Email", required=True)
        new_pin = PinInputField("new_pin", "New PIN", required=True)
        confirm_pin = PinInputField("confirm_pin", "Confirm PIN", required=True)

        otp_html = ""
        if self.otp:
            otp_html = f'<input type="hidden" name="otp" value="{self.escape(self.otp)}">'

        error_html = ""
        if self.error:
            error_html = f'<div class="form-error" role="alert">{self.escape(self.error)}</div>'

        return f"""
        <form method="post" action="/reset-pin" class="reset-pin-form">
            {otp_html}
            {email_field.render(value=self.email, input_type="email", autocomplete="email", class_="form-input")}
            {new_pin.render()}
            {confirm_pin.render(autofocus=False)}
            {error_html}
            <div class="form-actions">
                {SubmitButton("Reset PIN", loading_label="Resetting PIN...").render()}
            </div>
        </form>
        """
