# Config module
from .settings import settings, validate_settings
from .intake_schema import (
    DocumentType,
    FieldCategory,
    FieldKind,
    FileHandle,
    FieldSet,
    Step,
    INTAKE_STEPS,
    RESULT_STEP_INFO,
    TransformedPayload,
    PublishResult,
    SubmissionResult,
    WalletContext,
    truncate_address,
)

__all__ = [
    "settings",
    "validate_settings",
    "DocumentType",
    "FieldCategory",
    "FieldKind",
    "FileHandle",
    "FieldSet",
    "Step",
    "INTAKE_STEPS",
    "RESULT_STEP_INFO",
    "TransformedPayload",
    "PublishResult",
    "SubmissionResult",
    "WalletContext",
    "truncate_address",
]
