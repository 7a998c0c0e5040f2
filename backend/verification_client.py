"""
Verification Service Client - HTTP integration with the DID issuance service.

Sends the transformed KYC payload to POST {VERIFICATION_API_URL}/api/kyc-submit
and turns the reply into a SubmissionResult or a typed SubmissionError.

Response contract:
    success: true  -> did, address, verifiableCredentials, publishResult, kycTimestamp
    success: false -> error
Any non-2xx status is a rejection, whatever the body says.
"""

import json
import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from config.settings import settings
from config.intake_schema import SubmissionResult, TransformedPayload
from backend.exceptions import SubmissionRejectedError, SubmissionUnreachableError
from backend.payload_transformer import to_wire

logger = logging.getLogger(__name__)


class VerificationClient:
    """
    Async client for the KYC submission endpoint.

    A new httpx.AsyncClient is opened per submission; a form submits at
    most a handful of times, so there is no session to keep warm.
    """

    def __init__(
        self,
        submit_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.submit_url = submit_url or settings.submit_url
        self.timeout = timeout if timeout is not None else settings.SUBMIT_TIMEOUT_SECONDS
        self._transport = transport

    async def submit_kyc(self, payload: TransformedPayload) -> SubmissionResult:
        """
        Submit a payload and parse the service reply.

        Raises:
            SubmissionRejectedError: negative outcome or non-2xx status
            SubmissionUnreachableError: transport failure or malformed body
        """
        body = to_wire(payload)
        logger.info(f"[Verification] POST {self.submit_url}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.submit_url, json=body)
        except httpx.TimeoutException as e:
            logger.warning(f"[Verification] Request timed out: {e}")
            raise SubmissionUnreachableError("Verification service timed out") from e
        except httpx.HTTPError as e:
            logger.warning(f"[Verification] Transport error: {e}")
            raise SubmissionUnreachableError(
                f"Verification service unreachable ({type(e).__name__})"
            ) from e

        return parse_submission_response(response.status_code, response.content)


def _server_message(document: Any) -> Optional[str]:
    if not isinstance(document, dict):
        return None
    message = document.get("error") or document.get("message")
    if isinstance(message, dict):
        message = message.get("message")
    return str(message) if message else None


def parse_submission_response(status_code: int, content: bytes) -> SubmissionResult:
    """Interpret a raw reply from the submission endpoint."""
    try:
        document = json.loads(content) if content else None
    except ValueError:
        document = None

    if not 200 <= status_code < 300:
        reason = _server_message(document)
        logger.warning(f"[Verification] Rejected with HTTP {status_code}: {reason}")
        if reason:
            raise SubmissionRejectedError(reason, status_code=status_code)
        raise SubmissionRejectedError.from_status(status_code)

    if not isinstance(document, dict):
        raise SubmissionUnreachableError("Malformed response from verification service")

    if document.get("success") is not True:
        reason = _server_message(document) or "KYC submission failed"
        logger.warning(f"[Verification] Negative outcome: {reason}")
        raise SubmissionRejectedError(reason, status_code=status_code)

    try:
        result = SubmissionResult.model_validate(document)
    except ValidationError as e:
        logger.warning(f"[Verification] Success reply missing fields: {e.error_count()} errors")
        raise SubmissionUnreachableError("Malformed response from verification service") from e

    logger.info(f"[Verification] Issued {result.did}")
    return result
