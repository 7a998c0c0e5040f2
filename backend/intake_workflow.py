"""
Intake Workflow - Top-level owner of one user's KYC intake session.

Holds the FieldStore, StepController and SubmissionController for a
single form instance and wires them together:

    edit fields -> advance/retreat -> explicit submit at the last step
    -> transform -> submit -> result step on success

Failures are returned as a SubmitOutcome carrying the message to show
the user; the form stays on the last step so the user can retry.
"""

import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from config.settings import settings
from config.intake_schema import SubmissionResult
from backend.exceptions import (
    SubmissionCancelledError,
    SubmissionError,
    SubmissionInFlightError,
)
from backend.field_store import FieldStore
from backend.payload_transformer import transform
from backend.result_presenter import ResultPresenter
from backend.step_controller import (
    StepController,
    StepValidator,
    ValidationOutcome,
    build_validator,
)
from backend.submission_controller import CancellationToken, SubmissionController

logger = logging.getLogger(__name__)


class SubmitOutcome(BaseModel):
    """What happened when the user pressed submit."""
    success: bool
    message: Optional[str] = None  # shown to the user, must be acknowledged
    cancelled: bool = False
    errors: Dict[str, str] = Field(default_factory=dict)
    result: Optional[SubmissionResult] = None


class IntakeWorkflow:
    """One form instance. Nothing here is shared between sessions."""

    def __init__(
        self,
        field_store: Optional[FieldStore] = None,
        step_controller: Optional[StepController] = None,
        submission_controller: Optional[SubmissionController] = None,
        validator: Optional[StepValidator] = None,
    ):
        self.fields = field_store or FieldStore()
        self.steps = step_controller or StepController(
            validator=validator or build_validator(settings.VALIDATION_POLICY)
        )
        self.submission = submission_controller or SubmissionController()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def current_step(self) -> int:
        return self.steps.current

    @property
    def is_submitting(self) -> bool:
        return self.submission.in_flight

    @property
    def is_complete(self) -> bool:
        return self.steps.is_complete

    @property
    def result(self) -> Optional[SubmissionResult]:
        return self.submission.result

    def presenter(self) -> ResultPresenter:
        return ResultPresenter(self.submission.result)

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def set_field(self, field_name: str, value: Any) -> None:
        self.fields.set(field_name, value)

    def advance(self) -> ValidationOutcome:
        if self.is_submitting:
            logger.debug("[Workflow] advance ignored while submitting")
            return ValidationOutcome()

        outcome = self.steps.advance(self.fields.snapshot())
        self.fields.set_errors(outcome.errors)
        return outcome

    def retreat(self) -> None:
        if self.is_submitting:
            logger.debug("[Workflow] retreat ignored while submitting")
            return
        self.steps.retreat()

    def cancel(self) -> bool:
        """Abort an outstanding submission and return the form to editing."""
        return self.submission.cancel()

    async def submit(self, cancel_token: Optional[CancellationToken] = None) -> SubmitOutcome:
        """
        Explicit submit action.

        Only honoured on the final intake step; anywhere else it is
        logged and ignored without a user-visible error.
        """
        if not self.steps.can_submit():
            logger.info(f"[Workflow] Submit blocked - not on final step (step {self.current_step})")
            return SubmitOutcome(success=False)

        validation = self.steps.validate(self.current_step, self.fields.snapshot())
        self.fields.set_errors(validation.errors)
        if not validation.ok:
            logger.info(f"[Workflow] Submit blocked by validation: {sorted(validation.errors)}")
            return SubmitOutcome(success=False, errors=validation.errors)

        payload = transform(self.fields.snapshot())
        logger.info("[Workflow] Manual form submission triggered")

        try:
            result = await self.submission.submit(payload, cancel_token=cancel_token)
        except SubmissionInFlightError:
            return SubmitOutcome(success=False)
        except SubmissionCancelledError:
            logger.info("[Workflow] Submission cancelled, form is editable again")
            return SubmitOutcome(success=False, cancelled=True)
        except SubmissionError as e:
            logger.error(f"[Workflow] KYC submission error: {e.reason}")
            return SubmitOutcome(success=False, message=e.user_message)

        self.steps.complete()
        return SubmitOutcome(success=True, result=result)
