"""
Submission Controller - Lifecycle of the asynchronous KYC submission.

idle -> in_flight -> succeeded
                  -> failed / cancelled -> (retry) in_flight ...

Only one submission may be outstanding. Each attempt is bounded by a
timeout and can be aborted through a CancellationToken.
"""

import asyncio
import logging
import threading
from enum import Enum
from typing import Callable, List, Optional

from config.settings import settings
from config.intake_schema import SubmissionResult, TransformedPayload
from backend.exceptions import (
    SubmissionCancelledError,
    SubmissionError,
    SubmissionInFlightError,
    SubmissionUnreachableError,
)
from backend.verification_client import VerificationClient

logger = logging.getLogger(__name__)


class SubmissionStatus(str, Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class CancellationToken:
    """
    Signals that an outstanding submission should be abandoned.

    `cancel()` may be called from any thread; registered callbacks run
    once, immediately if the token was already cancelled.
    """

    def __init__(self):
        self._cancelled = False
        self._callbacks: List[Callable[[], None]] = []
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run `callback` on cancellation. Returns a function that unregisters it."""
        with self._lock:
            if not self._cancelled:
                self._callbacks.append(callback)
                return lambda: self._unregister(callback)
        callback()
        return lambda: None

    def _unregister(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)


class SubmissionController:
    """Sends a payload once at a time and keeps the issued result."""

    def __init__(
        self,
        client: Optional[VerificationClient] = None,
        timeout: Optional[float] = None,
    ):
        self.client = client or VerificationClient()
        self.timeout = timeout if timeout is not None else settings.SUBMIT_TIMEOUT_SECONDS
        self.status = SubmissionStatus.IDLE
        self.last_error: Optional[SubmissionError] = None
        self._result: Optional[SubmissionResult] = None
        self._token: Optional[CancellationToken] = None
        self.requests_sent = 0

    @property
    def in_flight(self) -> bool:
        return self.status == SubmissionStatus.IN_FLIGHT

    @property
    def result(self) -> Optional[SubmissionResult]:
        return self._result

    def cancel(self) -> bool:
        """Abort the outstanding submission, if any."""
        if not self.in_flight or self._token is None:
            return False
        logger.info("[Submission] Cancellation requested")
        self._token.cancel()
        return True

    async def submit(
        self,
        payload: TransformedPayload,
        cancel_token: Optional[CancellationToken] = None,
        timeout: Optional[float] = None,
    ) -> SubmissionResult:
        """
        Send the payload to the verification service.

        Raises:
            SubmissionInFlightError: another submission is outstanding
            SubmissionRejectedError: the service refused the submission
            SubmissionUnreachableError: no usable reply, or the timeout expired
            SubmissionCancelledError: the token was cancelled
        """
        if self.in_flight:
            logger.warning("[Submission] Duplicate submit ignored while in flight")
            raise SubmissionInFlightError()
        if self._result is not None:
            raise SubmissionError("Submission already completed")

        limit = timeout if timeout is not None else self.timeout
        token = cancel_token or CancellationToken()
        self._token = token
        self.status = SubmissionStatus.IN_FLIGHT
        self.last_error = None
        self.requests_sent += 1

        loop = asyncio.get_running_loop()
        task = asyncio.ensure_future(self.client.submit_kyc(payload))
        unregister = token.register(lambda: loop.call_soon_threadsafe(task.cancel))

        try:
            result = await asyncio.wait_for(task, timeout=limit)
        except asyncio.CancelledError:
            if not token.cancelled:
                raise
            error = SubmissionCancelledError()
            self._fail(SubmissionStatus.CANCELLED, error)
            raise error from None
        except asyncio.TimeoutError:
            error = SubmissionUnreachableError(f"No response after {limit:g} seconds")
            self._fail(SubmissionStatus.FAILED, error)
            raise error from None
        except SubmissionError as e:
            self._fail(SubmissionStatus.FAILED, e)
            raise
        else:
            self._result = result
            self.status = SubmissionStatus.SUCCEEDED
        finally:
            unregister()
            self._token = None
            if self.status == SubmissionStatus.IN_FLIGHT:
                self.status = SubmissionStatus.FAILED

        logger.info(f"[Submission] Succeeded: {result.did}")
        return result

    def _fail(self, status: SubmissionStatus, error: SubmissionError) -> None:
        self.status = status
        self.last_error = error
        logger.warning(f"[Submission] {status.value}: {error.reason}")
