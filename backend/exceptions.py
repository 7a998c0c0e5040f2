"""
Submission errors raised by the verification client and submission controller.
"""

from typing import Optional


class SubmissionError(Exception):
    """Base for every failed KYC submission. `reason` is safe to show the user."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)

    @property
    def user_message(self) -> str:
        return f"KYC submission failed: {self.reason}"


class SubmissionRejectedError(SubmissionError):
    """The service answered with a non-2xx status or a negative outcome."""

    def __init__(self, reason: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(reason)

    @classmethod
    def from_status(cls, status_code: int) -> "SubmissionRejectedError":
        return cls(reason=f"HTTP {status_code}", status_code=status_code)


class SubmissionUnreachableError(SubmissionError):
    """No usable response: transport failure, timeout or malformed body."""


class SubmissionCancelledError(SubmissionError):
    """The user aborted an outstanding submission."""

    def __init__(self, reason: str = "Submission cancelled"):
        super().__init__(reason)


class SubmissionInFlightError(SubmissionError):
    """A submission is already outstanding; no second request is sent."""

    def __init__(self, reason: str = "A submission is already in progress"):
        super().__init__(reason)
