"""
PIN modal, skeletons and form components.
"""

from components import DashboardSkeleton, Layout, LoginForm, PinModal, ResetPinForm, Toasts  # type: ignore
from components.forms import PinInputField, SubmitButton  # type: ignore
from identity_access.pin_gate import GateState, Notice  # type: ignore


def test_set_dialog_offers_set_and_later():
    html = PinModal(mode=GateState.SET, next_path="/dashboard/org").render()
    assert 'action="/pin/set"' in html
    assert 'formaction="/pin/cancel"' in html
    assert "Set PIN" in html
    assert "(Overview, Profile, Settings, and Wallet/Payout)" in html
    assert 'name="next" value="/dashboard/org"' in html


def test_later_and_forgot_skip_browser_validation():
    set_html = PinModal(mode=GateState.SET, next_path="/dashboard/org").render()
    enter_html = PinModal(mode=GateState.ENTER, next_path="/dashboard/org").render()
    assert 'formaction="/pin/cancel" formnovalidate' in set_html
    assert 'formaction="/pin/forgot" formnovalidate' in enter_html


def test_enter_dialog_shows_error_inline():
    html = PinModal(mode=GateState.ENTER, next_path="/dashboard/org/payout", error="Incorrect PIN. Access denied.").render()
    assert 'action="/pin/verify"' in html
    assert "Incorrect PIN. Access denied." in html
    assert 'aria-invalid="true"' in html


def test_loading_modal_has_no_form():
    html = PinModal(mode=GateState.UNINITIALIZED, next_path="/dashboard/org", loading=True).render()
    assert "<form" not in html
    assert "pin-modal__spinner" in html


def test_submitting_disables_buttons():
    html = PinModal(mode=GateState.SET, next_path="/dashboard/org", submitting=True).render()
    assert "Setting PIN..." in html
    assert "disabled" in html


def test_pin_input_is_masked_numeric_and_never_prefilled():
    html = PinInputField("pin", "PIN", required=True).render()
    assert 'type="password"' in html
    assert 'inputmode="numeric"' in html
    assert 'maxlength="4"' in html
    assert "value=" not in html


def test_submit_button_variants():
    assert "formnovalidate" not in SubmitButton("Go").render()
    assert 'class="btn btn-ghost"' in SubmitButton("Later", variant="ghost").render()


def test_layout_marks_content_gated_under_overlay():
    overlay = PinModal(mode=GateState.SET, next_path="/dashboard/org").render()
    html = Layout("Overview", DashboardSkeleton().render(), overlay=overlay, show_nav=False).render()
    assert 'class="page-content gated"' in html
    assert "dashboard-skeleton" in html


def test_layout_escapes_title_and_renders_toasts():
    html = Layout("<x>", "", show_nav=False, notices=[Notice("success", "PIN set successfully")]).render()
    assert "&lt;x&gt; - RADAR" in html
    assert 'class="toast toast--success"' in html


def test_toasts_escape_text():
    html = Toasts([Notice("error", "<b>bad</b>")]).render()
    assert "<b>" not in html


def test_login_and_reset_forms():
    login = LoginForm(email="a@b.c", callback_url="/dashboard/org", error="Invalid email or password").render()
    assert 'action="/login"' in login
    assert 'name="callbackUrl" value="/dashboard/org"' in login
    assert "Invalid email or password" in login

    reset = ResetPinForm(email="a@b.c", otp="123456").render()
    assert 'name="new_pin"' in reset
    assert 'name="confirm_pin"' in reset
    assert 'name="otp" value="123456"' in reset
