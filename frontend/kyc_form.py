"""
KYC Intake Form - Multi-Step Streamlit Application

Collects the user's identity data over five steps and submits it to the
verification service, which returns a DID, verifiable credentials and a
ledger publish receipt.

    Personal Information -> Identity Documents -> Address Verification
    -> Financial Information -> Consents -> Verification Complete

Run with:
    streamlit run frontend/kyc_form.py
"""

import asyncio
import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from pathlib import Path

import streamlit as st

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config.settings import settings
from config.intake_schema import INTAKE_STEPS, RESULT_STEP_INFO, WalletContext, truncate_address
from config.intake_options import (
    CONSENT_LABELS,
    COUNTRIES,
    EMPLOYMENT_STATUSES,
    GENDER_OPTIONS,
    IDENTITY_DOCUMENT_OPTIONS,
    INCOME_RANGES,
    SOURCE_OF_FUNDS_OPTIONS,
    format_option,
)
from backend.intake_workflow import IntakeWorkflow
from backend.submission_controller import CancellationToken
from frontend.form_fields import (
    render_checkbox_field,
    render_date_field,
    render_file_field,
    render_radio_field,
    render_select_field,
    render_text_field,
)

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.3


# =============================================================================
# PAGE CONFIG
# =============================================================================

st.set_page_config(
    page_title="KYC Verification",
    page_icon="🛡️",
    layout="centered",
    initial_sidebar_state="expanded"
)

st.markdown("""
<style>
    .main .block-container {
        max-width: 900px;
        padding-top: 2rem;
        padding-bottom: 2rem;
    }
    .step-pill {
        display: inline-flex;
        align-items: center;
        justify-content: center;
        width: 34px;
        height: 34px;
        border-radius: 50%;
        font-weight: 600;
    }
    .step-pill-complete { background: #28a745; color: #fff; }
    .step-pill-active { background: #ff444f; color: #fff; }
    .step-pill-pending { background: #e9ecef; color: #6c757d; }
    .result-card {
        background: #d4edda;
        border-radius: 12px;
        padding: 20px 24px;
        margin: 16px 0;
    }
    .result-card p { color: #155724; margin: 6px 0; word-break: break-all; }
</style>
""", unsafe_allow_html=True)


# =============================================================================
# SESSION STATE
# =============================================================================

def init_form_state():
    """One IntakeWorkflow per browser session."""
    if "kyc_workflow" not in st.session_state:
        st.session_state.kyc_workflow = IntakeWorkflow()
        logger.info("[KYC Form] New intake session started")
    if "kyc_pending_alert" not in st.session_state:
        st.session_state.kyc_pending_alert = None


def get_workflow() -> IntakeWorkflow:
    return st.session_state.kyc_workflow


def get_wallet_context() -> WalletContext:
    """Wallet state is provided by the wallet integration via query params."""
    address = st.query_params.get("wallet")
    return WalletContext(
        is_connected=bool(address),
        address=address,
        wallet_type=st.query_params.get("wallet_type"),
    )


def disconnect_wallet():
    for key in ("wallet", "wallet_type"):
        if key in st.query_params:
            del st.query_params[key]
    logger.info("[KYC Form] Wallet disconnected")
    st.rerun()


def alert_pending() -> bool:
    return st.session_state.get("kyc_pending_alert") is not None


# =============================================================================
# STEP INDICATOR
# =============================================================================

def render_step_indicator(current_step: int):
    """Render visual step indicator with a progress bar."""
    total_steps = len(INTAKE_STEPS)
    steps_html = '<div style="display:flex;justify-content:center;align-items:center;gap:8px;margin:20px 0;">'

    for step in INTAKE_STEPS:
        if step.number < current_step:
            pill, color = f'<span class="step-pill step-pill-complete">✓</span>', "#28a745"
        elif step.number == current_step:
            pill, color = f'<span class="step-pill step-pill-active">{step.icon}</span>', "#ff444f"
        else:
            pill, color = f'<span class="step-pill step-pill-pending">{step.number}</span>', "#6c757d"

        steps_html += f'''
        <div style="text-align:center;">
            {pill}
            <div style="font-size:11px;color:{color};margin-top:4px;">{step.title}</div>
        </div>
        '''
        if step.number < total_steps:
            line = "#28a745" if step.number < current_step else "#e9ecef"
            steps_html += f'<div style="width:28px;height:2px;background:{line};"></div>'

    steps_html += '</div>'
    st.markdown(steps_html, unsafe_allow_html=True)
    st.progress(get_workflow().steps.progress, text=f"Step {current_step} of {total_steps}")
    st.markdown("---")


# =============================================================================
# STEP 1: PERSONAL INFORMATION
# =============================================================================

def render_step_personal(wf: IntakeWorkflow, locked: bool):
    col1, col2 = st.columns(2)
    with col1:
        render_text_field(wf, "first_name", "First Name *", placeholder="John", disabled=locked)
    with col2:
        render_text_field(wf, "last_name", "Last Name *", placeholder="Doe", disabled=locked)

    col1, col2 = st.columns(2)
    with col1:
        render_date_field(wf, "date_of_birth", "Date of Birth *", max_value=date.today(), disabled=locked)
    with col2:
        render_select_field(
            wf, "gender", "Gender", GENDER_OPTIONS,
            placeholder="Select gender", format_func=format_option, disabled=locked,
        )

    col1, col2 = st.columns(2)
    with col1:
        render_select_field(wf, "nationality", "Nationality *", COUNTRIES,
                            placeholder="Select nationality", disabled=locked)
    with col2:
        render_text_field(wf, "place_of_birth", "Place of Birth", placeholder="City, Country", disabled=locked)

    col1, col2 = st.columns(2)
    with col1:
        render_text_field(wf, "email", "Email Address *", placeholder="john.doe@example.com", disabled=locked)
    with col2:
        render_text_field(wf, "phone_number", "Phone Number *", placeholder="+1 555 123 4567", disabled=locked)


# =============================================================================
# STEP 2: IDENTITY DOCUMENTS
# =============================================================================

def render_step_identity(wf: IntakeWorkflow, locked: bool):
    render_radio_field(wf, "identity_doc_type", "Document Type *", IDENTITY_DOCUMENT_OPTIONS, disabled=locked)
    render_text_field(wf, "document_number", "Document Number *", placeholder="AB1234567", disabled=locked)

    col1, col2 = st.columns(2)
    with col1:
        render_date_field(wf, "issue_date", "Issue Date", max_value=date.today(), disabled=locked)
    with col2:
        render_date_field(wf, "expiry_date", "Expiry Date", min_value=date(2000, 1, 1), disabled=locked)

    render_file_field(
        wf, "identity_document", "Upload Identity Document *",
        help_text="Clear photo or scan of the selected document", disabled=locked,
    )


# =============================================================================
# STEP 3: ADDRESS VERIFICATION
# =============================================================================

def render_step_address(wf: IntakeWorkflow, locked: bool):
    render_text_field(wf, "street", "Street Address *", placeholder="123 Main Street", disabled=locked)

    col1, col2 = st.columns(2)
    with col1:
        render_text_field(wf, "city", "City *", placeholder="New York", disabled=locked)
    with col2:
        render_text_field(wf, "state", "State / Province", placeholder="NY", disabled=locked)

    col1, col2 = st.columns(2)
    with col1:
        render_text_field(wf, "postal_code", "Postal Code *", placeholder="10001", disabled=locked)
    with col2:
        render_select_field(wf, "country", "Country *", COUNTRIES,
                            placeholder="Select country", disabled=locked)

    render_file_field(
        wf, "address_document", "Proof of Address *",
        help_text="Utility bill issued within the last three months", disabled=locked,
    )


# =============================================================================
# STEP 4: FINANCIAL INFORMATION
# =============================================================================

def render_step_financial(wf: IntakeWorkflow, locked: bool):
    col1, col2 = st.columns(2)
    with col1:
        render_select_field(wf, "income_range", "Annual Income (USD) *", INCOME_RANGES,
                            placeholder="Select income range", disabled=locked)
    with col2:
        render_select_field(wf, "employment_status", "Employment Status *", EMPLOYMENT_STATUSES,
                            placeholder="Select status", format_func=format_option, disabled=locked)

    col1, col2 = st.columns(2)
    with col1:
        render_select_field(wf, "source_of_funds", "Source of Funds *", SOURCE_OF_FUNDS_OPTIONS,
                            placeholder="Select source", format_func=format_option, disabled=locked)
    with col2:
        render_text_field(wf, "employer", "Employer", placeholder="Company name", disabled=locked)

    render_file_field(wf, "payslip", "Recent Payslip (optional)", disabled=locked)


# =============================================================================
# STEP 5: CONSENTS
# =============================================================================

def render_step_consents(wf: IntakeWorkflow, locked: bool):
    st.markdown("Please review and accept the following before submitting:")
    for field_id, label in CONSENT_LABELS.items():
        render_checkbox_field(wf, field_id, label, disabled=locked)


STEP_RENDERERS = {
    1: render_step_personal,
    2: render_step_identity,
    3: render_step_address,
    4: render_step_financial,
    5: render_step_consents,
}


# =============================================================================
# NAVIGATION & SUBMISSION
# =============================================================================

@st.cache_resource
def get_submit_executor() -> ThreadPoolExecutor:
    """Worker threads that run submissions outside the script run."""
    return ThreadPoolExecutor(max_workers=4, thread_name_prefix="kyc-submit")


def submission_pending() -> bool:
    return st.session_state.get("kyc_submit_future") is not None


def start_submission(wf: IntakeWorkflow):
    """
    Hand the submission to a worker thread and rerun, so the page is drawn
    with Submit disabled while the request is outstanding.
    """
    token = CancellationToken()
    st.session_state.kyc_cancel_token = token
    st.session_state.kyc_submit_future = get_submit_executor().submit(
        asyncio.run, wf.submit(cancel_token=token)
    )
    logger.info("[KYC Form] Submission started")
    st.rerun()


def collect_submission():
    """Move a finished submission's outcome into session state."""
    future = st.session_state.get("kyc_submit_future")
    if future is None or not future.done():
        return

    st.session_state.kyc_submit_future = None
    st.session_state.kyc_cancel_token = None
    outcome = future.result()
    if outcome.message:
        st.session_state.kyc_pending_alert = outcome.message
    elif outcome.cancelled:
        logger.info("[KYC Form] Submission cancelled by user")


def cancel_submission(wf: IntakeWorkflow):
    token = st.session_state.get("kyc_cancel_token")
    # Before the worker marks the request in flight, cancel the token directly
    if not wf.cancel() and token is not None:
        token.cancel()


def render_pending_alert():
    """Blocking error notice. Navigation stays disabled until acknowledged."""
    message = st.session_state.kyc_pending_alert
    st.error(message)
    if st.button("OK", key="kyc_alert_ack", type="primary"):
        st.session_state.kyc_pending_alert = None
        st.rerun()


def render_navigation(wf: IntakeWorkflow, locked: bool, submitting: bool):
    st.markdown("---")
    col1, col2, col3 = st.columns([1, 2, 1])
    at_first = wf.current_step == 1
    at_last = wf.steps.can_submit()

    with col1:
        if st.button("← Previous", disabled=at_first or locked, use_container_width=True):
            wf.retreat()
            st.rerun()

    with col2:
        if submitting:
            st.info("Submitting KYC data and issuing your DID...")
            if st.button("Cancel", key="kyc_cancel_submit", use_container_width=True):
                cancel_submission(wf)

    with col3:
        if at_last:
            label = "Submitting..." if submitting else "Submit KYC"
            if st.button(label, type="primary", disabled=locked, use_container_width=True):
                start_submission(wf)
        else:
            if st.button("Next →", type="primary", disabled=locked, use_container_width=True):
                wf.advance()
                st.rerun()


# =============================================================================
# RESULT STEP
# =============================================================================

def render_step_result(wf: IntakeWorkflow):
    """Terminal step. Shows the issued identity."""
    presenter = wf.presenter()
    view = presenter.view()

    st.markdown(f'''<div style="text-align:center;padding:24px 0;">
        <div style="font-size:56px;">{RESULT_STEP_INFO.icon}</div>
        <h1 style="color:#28a745;margin:0;">{RESULT_STEP_INFO.title}</h1>
    </div>''', unsafe_allow_html=True)

    rows_html = ""
    for label, value in presenter.as_rows():
        if label == "Transaction" and view.explorer_url:
            value = f'<a href="{view.explorer_url}" target="_blank">{value}</a>'
        rows_html += f"<p><strong>{label}:</strong> {value}</p>"
    st.markdown(f'<div class="result-card">{rows_html}</div>', unsafe_allow_html=True)

    if view.credential_types:
        with st.expander("Issued credentials"):
            for credential_type in view.credential_types:
                st.markdown(f"- {credential_type}")

    st.markdown("---")
    col1, col2, col3 = st.columns([1, 2, 1])
    with col2:
        st.link_button("Generate Debit Card", settings.CREATE_FLOW_URL, type="primary", use_container_width=True)


# =============================================================================
# MAIN APP
# =============================================================================

def render_sidebar():
    wallet = get_wallet_context()
    with st.sidebar:
        st.markdown("### 🛡️ KYC Verification")
        st.markdown("---")
        if wallet.is_connected:
            st.success(f"Wallet: {truncate_address(wallet.address)}")
            if wallet.wallet_type:
                st.caption(wallet.wallet_type)
            if st.button("Disconnect", key="wallet_disconnect"):
                disconnect_wallet()
        else:
            st.info("No wallet connected")


def main():
    """Main application entry point."""
    init_form_state()
    collect_submission()
    render_sidebar()
    wf = get_workflow()

    st.title("🛡️ KYC Verification")
    st.caption("Verify your identity to receive a decentralized identifier")

    if wf.is_complete:
        render_step_result(wf)
        return

    step = INTAKE_STEPS[wf.current_step - 1]
    render_step_indicator(wf.current_step)
    st.subheader(f"{step.icon} {step.title}")

    submitting = submission_pending() or wf.is_submitting
    locked = submitting or alert_pending()
    if alert_pending():
        render_pending_alert()

    STEP_RENDERERS[wf.current_step](wf, locked)
    render_navigation(wf, locked, submitting)

    st.markdown("---")
    st.caption("Your data is sent only to the verification service")

    # Poll until the worker finishes; a Cancel click interrupts the sleep
    if submitting:
        time.sleep(POLL_INTERVAL_SECONDS)
        st.rerun()


if __name__ == "__main__":
    main()
