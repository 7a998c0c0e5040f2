"""
Step Controller - Sequencing for the multi-step intake flow.

Steps 1..N are the intake pages; N+1 is the result page, reachable only
after a successful submission. Whether a step may be left is decided by
an injected StepValidator, so the validation policy can be swapped without
touching the controller.
"""

import logging
import re
from datetime import date
from typing import Dict, List, Optional, Protocol

from pydantic import BaseModel, Field

from config.intake_schema import INTAKE_STEPS, RESULT_STEP_INFO, FieldSet, Step

logger = logging.getLogger(__name__)


# =============================================================================
# VALIDATION POLICIES
# =============================================================================

class ValidationOutcome(BaseModel):
    """Result of validating one step."""
    ok: bool = True
    errors: Dict[str, str] = Field(default_factory=dict)


class StepValidator(Protocol):
    def validate(self, step: int, fields: FieldSet) -> ValidationOutcome:
        ...


class NoOpValidator:
    """Accepts every step. Default policy: the form never blocks navigation."""

    def validate(self, step: int, fields: FieldSet) -> ValidationOutcome:
        return ValidationOutcome()


EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
PHONE_PATTERN = r"^\+?[\d\s\-()]{7,20}$"

REQUIRED_TEXT_FIELDS: Dict[int, List[str]] = {
    1: ["first_name", "last_name", "date_of_birth", "nationality", "email", "phone_number"],
    2: ["identity_doc_type", "document_number"],
    3: ["street", "city", "postal_code", "country"],
    4: ["income_range", "employment_status", "source_of_funds"],
    5: [],
}

REQUIRED_FILES: Dict[int, List[str]] = {
    2: ["identity_document"],
    3: ["address_document"],
}

REQUIRED_CONSENTS = [
    "data_processing",
    "kyc_verification",
    "data_sharing",
    "terms_of_service",
    "privacy_policy",
]


def _label(field_name: str) -> str:
    return field_name.replace("_", " ").capitalize()


class RequiredFieldsValidator:
    """
    Enforces required fields and basic formats per step.

    - Required text fields must be non-blank
    - Email and phone must match a simple pattern
    - Dates must be ISO (YYYY-MM-DD), and a date of birth must be in the past
    - Uploads for identity and address steps must be present
    - All consents must be given on the final step
    """

    def validate(self, step: int, fields: FieldSet) -> ValidationOutcome:
        flat = _flatten(fields)
        errors: Dict[str, str] = {}

        for name in REQUIRED_TEXT_FIELDS.get(step, []):
            if not str(flat.get(name) or "").strip():
                errors[name] = f"{_label(name)} is required"

        for name in REQUIRED_FILES.get(step, []):
            if flat.get(name) is None:
                errors[name] = "Please upload a document"

        if step == 1:
            email = flat.get("email") or ""
            if email and "email" not in errors and not re.match(EMAIL_PATTERN, email):
                errors["email"] = "Enter a valid email address"

            phone = flat.get("phone_number") or ""
            if phone and "phone_number" not in errors and not re.match(PHONE_PATTERN, phone):
                errors["phone_number"] = "Enter a valid phone number"

            dob = flat.get("date_of_birth") or ""
            if dob and "date_of_birth" not in errors:
                parsed = _parse_date(dob)
                if parsed is None:
                    errors["date_of_birth"] = "Use the format YYYY-MM-DD"
                elif parsed >= date.today():
                    errors["date_of_birth"] = "Date of birth must be in the past"

        if step == 2:
            for name in ("issue_date", "expiry_date"):
                value = flat.get(name) or ""
                if value and _parse_date(value) is None:
                    errors[name] = "Use the format YYYY-MM-DD"

        if step == 5:
            for name in REQUIRED_CONSENTS:
                if not flat.get(name):
                    errors[name] = "This consent is required"

        return ValidationOutcome(ok=not errors, errors=errors)


def _flatten(fields: FieldSet) -> Dict[str, object]:
    flat: Dict[str, object] = {}
    for section in (
        fields.personal,
        fields.identity_document,
        fields.address,
        fields.financial,
        fields.consents,
    ):
        flat.update(dict(section))
    return flat


def _parse_date(value: str) -> Optional[date]:
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


VALIDATION_POLICIES = {
    "none": NoOpValidator,
    "required": RequiredFieldsValidator,
}


def build_validator(policy: str) -> StepValidator:
    """Instantiate a validator by policy name ('none' or 'required')."""
    try:
        return VALIDATION_POLICIES[policy]()
    except KeyError:
        raise ValueError(f"Unknown validation policy: {policy}") from None


# =============================================================================
# STEP CONTROLLER
# =============================================================================

class StepController:
    """Tracks the current step within [1, N+1]."""

    def __init__(
        self,
        validator: Optional[StepValidator] = None,
        steps: Optional[List[Step]] = None,
    ):
        self.steps = list(steps or INTAKE_STEPS)
        self.validator = validator or NoOpValidator()
        self._current = 1

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def result_step(self) -> int:
        return self.total_steps + 1

    @property
    def current(self) -> int:
        return self._current

    @property
    def is_complete(self) -> bool:
        return self._current == self.result_step

    @property
    def current_step_info(self) -> Step:
        if self.is_complete:
            return RESULT_STEP_INFO
        return self.steps[self._current - 1]

    @property
    def progress(self) -> float:
        """Fraction of intake steps reached, 1.0 on the last step and after."""
        return min(self._current, self.total_steps) / self.total_steps

    def validate(self, step: int, fields: FieldSet) -> ValidationOutcome:
        return self.validator.validate(step, fields)

    def advance(self, fields: FieldSet) -> ValidationOutcome:
        """Move forward one step if the current one validates."""
        if not 1 <= self._current < self.total_steps:
            logger.debug(f"[Steps] advance ignored at step {self._current}")
            return ValidationOutcome()

        outcome = self.validate(self._current, fields)
        if outcome.ok:
            self._current += 1
        else:
            logger.info(f"[Steps] step {self._current} failed validation: {sorted(outcome.errors)}")
        return outcome

    def retreat(self) -> None:
        """Move back one step. Inert on the first step and on the result step."""
        if self.is_complete:
            logger.debug("[Steps] retreat ignored on result step")
            return
        self._current = max(self._current - 1, 1)

    def can_submit(self) -> bool:
        return self._current == self.total_steps

    def complete(self) -> None:
        """Enter the result step. Only valid from the final intake step."""
        if not self.can_submit():
            raise RuntimeError(f"Cannot complete from step {self._current}")
        self._current = self.result_step
