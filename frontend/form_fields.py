"""
Reusable Form Field Components for the KYC Intake Form

Provides Streamlit-based field renderers that:
- Read their initial value from the session's FieldStore
- Write edits back through the IntakeWorkflow
- Show the field's recorded validation error, if any
"""

from datetime import date
from typing import Callable, Dict, List, Optional

import streamlit as st

from backend.intake_workflow import IntakeWorkflow
from config.intake_schema import FileHandle


def get_field_key(field_id: str, prefix: str = "kyc") -> str:
    """Generate unique session state key for a field widget."""
    return f"{prefix}_{field_id}"


def _write_back(workflow: IntakeWorkflow, field_id: str, value) -> None:
    # Only real edits go to the store; a rerun must not wipe the field's error
    if workflow.fields.get(field_id) != value:
        workflow.set_field(field_id, value)


def _show_error(workflow: IntakeWorkflow, field_id: str) -> None:
    error = workflow.fields.get_error(field_id)
    if error:
        st.error(error)


def render_text_field(
    workflow: IntakeWorkflow,
    field_id: str,
    label: str,
    placeholder: str = "",
    help_text: str = "",
    prefix: str = "kyc",
    disabled: bool = False,
) -> str:
    """Render a text input bound to a FieldStore text field."""
    value = st.text_input(
        label,
        value=workflow.fields.get(field_id),
        key=get_field_key(field_id, prefix),
        placeholder=placeholder,
        help=help_text or None,
        disabled=disabled,
    )
    _write_back(workflow, field_id, value)
    _show_error(workflow, field_id)
    return value


def render_date_field(
    workflow: IntakeWorkflow,
    field_id: str,
    label: str,
    min_value: date = date(1900, 1, 1),
    max_value: Optional[date] = None,
    help_text: str = "",
    prefix: str = "kyc",
    disabled: bool = False,
) -> str:
    """
    Render a date picker. The store keeps dates as ISO strings; an empty
    store value shows an empty picker.
    """
    current = workflow.fields.get(field_id)
    try:
        initial = date.fromisoformat(current) if current else None
    except ValueError:
        initial = None

    picked = st.date_input(
        label,
        value=initial,
        min_value=min_value,
        max_value=max_value or date(2100, 12, 31),
        key=get_field_key(field_id, prefix),
        help=help_text or None,
        disabled=disabled,
    )
    value = picked.isoformat() if isinstance(picked, date) else ""
    _write_back(workflow, field_id, value)
    _show_error(workflow, field_id)
    return value


def render_select_field(
    workflow: IntakeWorkflow,
    field_id: str,
    label: str,
    options: List[str],
    placeholder: str = "Select an option",
    format_func: Optional[Callable[[str], str]] = None,
    prefix: str = "kyc",
    disabled: bool = False,
) -> str:
    """Render a dropdown. The empty option stands for 'not selected'."""
    choices = [""] + options
    current = workflow.fields.get(field_id)
    index = choices.index(current) if current in choices else 0

    def _format(option: str) -> str:
        if option == "":
            return placeholder
        return format_func(option) if format_func else option

    value = st.selectbox(
        label,
        options=choices,
        index=index,
        format_func=_format,
        key=get_field_key(field_id, prefix),
        disabled=disabled,
    )
    _write_back(workflow, field_id, value)
    _show_error(workflow, field_id)
    return value


def render_radio_field(
    workflow: IntakeWorkflow,
    field_id: str,
    label: str,
    options: List[Dict[str, str]],
    prefix: str = "kyc",
    disabled: bool = False,
) -> str:
    """Render a horizontal radio group from [{"value", "label"}] options."""
    values = [o["value"] for o in options]
    labels = {o["value"]: o["label"] for o in options}
    current = workflow.fields.get(field_id)

    value = st.radio(
        label,
        options=values,
        index=values.index(current) if current in values else None,
        format_func=lambda v: labels.get(v, v),
        horizontal=True,
        key=get_field_key(field_id, prefix),
        disabled=disabled,
    )
    value = value or ""
    _write_back(workflow, field_id, value)
    _show_error(workflow, field_id)
    return value


def render_checkbox_field(
    workflow: IntakeWorkflow,
    field_id: str,
    label: str,
    prefix: str = "kyc",
    disabled: bool = False,
) -> bool:
    """Render a consent checkbox."""
    value = st.checkbox(
        label,
        value=bool(workflow.fields.get(field_id)),
        key=get_field_key(field_id, prefix),
        disabled=disabled,
    )
    _write_back(workflow, field_id, value)
    _show_error(workflow, field_id)
    return value


def to_file_handle(uploaded_file) -> Optional[FileHandle]:
    """Convert a Streamlit UploadedFile into a FileHandle."""
    if uploaded_file is None:
        return None
    return FileHandle(
        name=uploaded_file.name,
        content_type=uploaded_file.type or "application/octet-stream",
        data=uploaded_file.getvalue(),
    )


def apply_upload(workflow: IntakeWorkflow, field_id: str, uploaded_file) -> None:
    """Store the uploader's current file; an emptied uploader clears the field."""
    workflow.set_field(field_id, to_file_handle(uploaded_file))


def _on_upload_change(workflow: IntakeWorkflow, field_id: str, key: str) -> None:
    apply_upload(workflow, field_id, st.session_state.get(key))


def render_file_field(
    workflow: IntakeWorkflow,
    field_id: str,
    label: str,
    accepted_types: Optional[List[str]] = None,
    help_text: str = "",
    prefix: str = "kyc",
    disabled: bool = False,
) -> Optional[FileHandle]:
    """
    Render an upload widget. The store only changes when the user picks or
    clears a file, so a stored file survives step changes even though the
    uploader itself starts empty again.
    """
    key = get_field_key(field_id, prefix)

    st.file_uploader(
        label,
        type=accepted_types or ["png", "jpg", "jpeg", "pdf"],
        key=key,
        help=help_text or None,
        disabled=disabled,
        on_change=_on_upload_change,
        args=(workflow, field_id, key),
    )

    stored = workflow.fields.get(field_id)
    if stored is not None:
        col1, col2 = st.columns([4, 1])
        with col1:
            st.caption(f"Selected: {stored.name} ({stored.size:,} bytes)")
        with col2:
            if st.button("Remove", key=f"{key}__remove", disabled=disabled):
                workflow.set_field(field_id, None)
                st.rerun()
    _show_error(workflow, field_id)
    return workflow.fields.get(field_id)
