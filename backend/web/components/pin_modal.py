"""
PIN gate modal.

Renders one of three dialogs depending on the gate:
    - loading: PIN existence not known yet
    - set: offer to create a PIN ("Set PIN" or "Cancel / Later")
    - enter: require the PIN ("Continue" or "Forgot PIN?")

All dialogs are plain POST forms with the protected path in a hidden `next`
field, so the modal also works without JavaScript.
"""

from typing import Optional

from identity_access.pin_gate import GateState

from .base import Component
from .forms import PinInputField, SubmitButton


SET_TITLE = (
    "Set a PIN to protect your sensitive information "
    "(Overview, Profile, Settings, and Wallet/Payout)."
)


class PinModal(Component):
    def __init__(
        self,
        *,
        mode: GateState,
        next_path: str,
        error: Optional[str] = None,
        loading: bool = False,
        submitting: bool = False,
    ):
        self.mode = mode
        self.next_path = next_path
        self.error = error
        self.loading = loading
        self.submitting = submitting

    def render(self) -> str:
        if self.loading:
            body = '<div class="pin-modal__spinner" role="status" aria-label="Loading"></div>'
        elif self.mode is GateState.SET:
            body = self._render_set()
        else:
            body = self._render_enter()
        return f"""
        <div class="pin-modal" role="dialog" aria-modal="true" aria-labelledby="pin-modal-title">
            <div class="pin-modal__backdrop"></div>
            <div class="pin-modal__panel">
                {body}
            </div>
        </div>"""

    def _hidden_next(self) -> str:
        return f'<input type="hidden" name="next" value="{self.escape(self.next_path)}">'

    def _pin_field(self, placeholder_help: str) -> str:
        field = PinInputField("pin", "PIN", required=True, help_text=None, error_text=self.error)
        return f'{field.render(disabled=self.submitting)}<p class="form-help">{self.escape(placeholder_help)}</p>'

    def _render_set(self) -> str:
        later = SubmitButton("Cancel / Later", variant="ghost", formaction="/pin/cancel", disabled=self.submitting)
        submit = SubmitButton("Set PIN", loading_label="Setting PIN...", is_loading=self.submitting)
        return f"""
                <h2 id="pin-modal-title" class="pin-modal__title">{self.escape(SET_TITLE)}</h2>
                <p class="text-muted">You can skip this for now and continue without PIN protection.</p>
                <form method="post" action="/pin/set" class="pin-form" data-mode="set">
                    {self._hidden_next()}
                    {self._pin_field("Choose a 4-digit PIN.")}
                    <div class="form-actions">
                        {later.render()}
                        {submit.render()}
                    </div>
                </form>"""

    def _render_enter(self) -> str:
        forgot = SubmitButton("Forgot PIN?", variant="link", formaction="/pin/forgot", disabled=self.submitting)
        submit = SubmitButton("Continue", loading_label="Checking...", is_loading=self.submitting)
        return f"""
                <h2 id="pin-modal-title" class="pin-modal__title">Enter your PIN to continue.</h2>
                <p class="text-muted">This page contains sensitive information.</p>
                <form method="post" action="/pin/verify" class="pin-form" data-mode="enter">
                    {self._hidden_next()}
                    {self._pin_field("Enter your 4-digit PIN.")}
                    <div class="form-actions form-actions--split">
                        {forgot.render()}
                        {submit.render()}
                    </div>
                </form>"""
