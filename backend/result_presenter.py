"""
Result Presenter - Read-only view of an issued identity.

Formats a SubmissionResult for the terminal result step. The result step
is only reachable once a result exists, so building a presenter without
one is an error.
"""

from typing import Any, List, Optional

from pydantic import BaseModel

from config.intake_schema import SubmissionResult


class ResultUnavailableError(LookupError):
    """Raised when the result step is rendered without a SubmissionResult."""


class ResultView(BaseModel):
    """Display-ready fields of the issued identity."""
    did: str
    address: str
    transaction_hash: str
    explorer_url: str
    credential_count: int
    credential_types: List[str]
    issued_at: Optional[str] = None

    class Config:
        frozen = True

    @property
    def credentials_summary(self) -> str:
        return f"{self.credential_count} types issued"


def _credential_type(descriptor: Any) -> str:
    if isinstance(descriptor, str):
        return descriptor
    if isinstance(descriptor, dict):
        kind = descriptor.get("type") or descriptor.get("credentialType") or descriptor.get("name")
        if isinstance(kind, list):
            # W3C style: ["VerifiableCredential", "KYCCredential"]
            specific = [k for k in kind if k != "VerifiableCredential"]
            kind = specific[-1] if specific else (kind[-1] if kind else None)
        if kind:
            return str(kind)
    return "Credential"


class ResultPresenter:
    """Wraps a SubmissionResult. Exposes no way to change it."""

    def __init__(self, result: Optional[SubmissionResult]):
        if result is None:
            raise ResultUnavailableError("No submission result to present")
        self._result = result

    @property
    def result(self) -> SubmissionResult:
        return self._result

    def view(self) -> ResultView:
        result = self._result
        return ResultView(
            did=result.did,
            address=result.address,
            transaction_hash=result.publish_result.transaction_hash,
            explorer_url=result.publish_result.explorer_url,
            credential_count=len(result.verifiable_credentials),
            credential_types=[_credential_type(c) for c in result.verifiable_credentials],
            issued_at=result.kyc_timestamp,
        )

    def as_rows(self) -> List[tuple[str, str]]:
        """Label/value pairs in display order."""
        view = self.view()
        rows = [
            ("DID", view.did),
            ("Address", view.address),
            ("Transaction", view.transaction_hash),
            ("Credentials", view.credentials_summary),
        ]
        if view.issued_at:
            rows.append(("Issued", view.issued_at))
        return rows
