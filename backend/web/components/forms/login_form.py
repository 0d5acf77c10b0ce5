"""
Login Form Component
"""
from typing import Optional
from components.base import Component
from .fields import TextInputField
from .submit import SubmitButton


class LoginForm(Component):
    """Email/password form posting to /login.

    `callback_url` is carried as a hidden field so a deep link that triggered
    the login survives the round trip.
    """

    def __init__(self, *, email: str = "", callback_url: Optional[str] = None, error: Optional[str] = None):
        self.email = email
        self.callback_url = callback_url
        self.error = error

    def render(self) -> str:
        email_field = TextInputField("email", "Email", required=True)
        password_field = TextInputField("password", "Password", required=True)

        callback_html = ""
        if self.callback_url:
            callback_html = f'<input type="hidden" name="callbackUrl" value="{self.escape(self.callback_url)}">'

        error_html = ""
        if self.error:
            error_html = f'<div class="form-error" role="alert">{self.escape(self.error)}</div>'

        return f"""
        <form method="post" action="/login" class="login-form">
            {callback_html}
            {email_field.render(value=self.email, input_type="email", autocomplete="email", class_="form-input")}
            {password_field.render(input_type="password", autocomplete="current-password", class_="form-input")}
            {error_html}
            <div class="form-actions">
                {SubmitButton("Log in", loading_label="Logging in...").render()}
            </div>
        </form>
        """
