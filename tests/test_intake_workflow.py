"""
Test Suite: Intake Workflow (end to end with a mocked service)

Tests:
1. Successful submission reaches the result step
2. Server error keeps the user on the last step with a message
3. Empty form is still submitted under the default policy
4. Submit is ignored before the last step
5. Required-fields policy blocks submit without a request
6. Navigation and resubmission are inert while in flight
7. Result presenter unavailable before success
8. Cancel returns the form to editing
"""

import sys
import os
import asyncio
import json

import httpx

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


SUCCESS_BODY = {
    "success": True,
    "did": "did:xrpl:1:abc",
    "address": "rAbC123",
    "verifiableCredentials": [{"type": "KYCCredential"}],
    "publishResult": {"txHash": "0xDEAD", "explorerUrl": "https://testnet.xrpl.org/transactions/0xDEAD"},
}


def _workflow(handler, validator=None):
    from backend.intake_workflow import IntakeWorkflow
    from backend.step_controller import NoOpValidator, StepController
    from backend.submission_controller import SubmissionController
    from backend.verification_client import VerificationClient

    client = VerificationClient(
        submit_url="http://verify.test/api/kyc-submit",
        transport=httpx.MockTransport(handler),
    )
    return IntakeWorkflow(
        step_controller=StepController(validator=validator or NoOpValidator()),
        submission_controller=SubmissionController(client=client, timeout=5.0),
    )


def _fill(workflow):
    from config.intake_schema import FileHandle

    workflow.fields.set_personal(
        first_name="Ada",
        last_name="Lovelace",
        date_of_birth="1815-12-10",
        nationality="United Kingdom",
        phone_number="+44 20 7946 0000",
        email="ada@example.com",
    )
    workflow.fields.set_identity_document(
        identity_doc_type="passport",
        document_number="P1234567",
        identity_document=FileHandle(name="passport.png", content_type="image/png", data=b"img"),
    )
    workflow.fields.set_address(
        street="12 St James's Square",
        city="London",
        postal_code="SW1Y 4LB",
        country="United Kingdom",
        address_document=FileHandle(name="bill.pdf", content_type="application/pdf", data=b"pdf"),
    )
    workflow.fields.set_financial(
        income_range="50000-75000",
        employment_status="employed",
        source_of_funds="salary",
    )
    workflow.fields.set_consents(
        data_processing=True,
        kyc_verification=True,
        data_sharing=True,
        terms_of_service=True,
        privacy_policy=True,
    )


def _go_to_last_step(workflow):
    for _ in range(4):
        assert workflow.advance().ok
    assert workflow.current_step == 5


def test_successful_submission():
    """Filled form, positive reply: result step with DID and transaction link."""
    print("\nTEST 1: Successful Submission")
    print("-" * 40)

    sent = []

    def handler(request):
        sent.append(json.loads(request.content))
        return httpx.Response(200, json=SUCCESS_BODY)

    workflow = _workflow(handler)
    _fill(workflow)
    _go_to_last_step(workflow)

    outcome = asyncio.run(workflow.submit())
    assert outcome.success
    assert outcome.message is None
    assert workflow.current_step == 6
    assert workflow.is_complete

    view = workflow.presenter().view()
    assert view.did == "did:xrpl:1:abc"
    assert view.address == "rAbC123"
    assert view.transaction_hash == "0xDEAD"
    assert view.explorer_url == "https://testnet.xrpl.org/transactions/0xDEAD"
    assert view.credentials_summary == "1 types issued"

    assert len(sent) == 1
    assert sent[0]["personalInfo"]["email"] == "ada@example.com"
    print(f"   Result step shows {view.did}")
    print(" PASSED: Successful submission")


def test_server_error():
    """HTTP 500: stay on step 5 with a blocking message; fields untouched."""
    print("\nTEST 2: Server Error")
    print("-" * 40)

    workflow = _workflow(lambda request: httpx.Response(500, json={"error": "Issuer offline"}))
    _fill(workflow)
    _go_to_last_step(workflow)
    before = workflow.fields.snapshot()

    outcome = asyncio.run(workflow.submit())
    assert not outcome.success
    assert outcome.message == "KYC submission failed: Issuer offline"
    assert workflow.current_step == 5
    assert workflow.result is None
    assert workflow.fields.snapshot() == before

    workflow = _workflow(lambda request: httpx.Response(500))
    _go_to_last_step(workflow)
    outcome = asyncio.run(workflow.submit())
    assert outcome.message == "KYC submission failed: HTTP 500"
    print(f"   {outcome.message}")
    print(" PASSED: Server error")


def test_empty_form_submitted():
    """With no validation an empty form is still sent, with default values."""
    print("\nTEST 3: Empty Form Submitted")
    print("-" * 40)

    sent = []

    def handler(request):
        sent.append(json.loads(request.content))
        return httpx.Response(200, json=SUCCESS_BODY)

    workflow = _workflow(handler)
    _go_to_last_step(workflow)
    outcome = asyncio.run(workflow.submit())

    assert outcome.success
    assert len(sent) == 1
    body = sent[0]
    assert body["personalInfo"]["firstName"] == ""
    assert body["identityDocuments"][0]["type"] == ""
    assert body["identityDocuments"][0]["file"] is None
    assert body["consents"]["dataProcessing"] is False
    assert body["consents"]["ipAddress"] == "unknown"
    assert body["addressProofDocument"]["type"] == "utility_bill"
    print(" PASSED: Empty form submitted")


def test_submit_before_last_step():
    """Submit on steps 1..N-1 is ignored without a message or request."""
    print("\nTEST 4: Submit Before Last Step")
    print("-" * 40)

    sent = []

    def handler(request):
        sent.append(request)
        return httpx.Response(200, json=SUCCESS_BODY)

    workflow = _workflow(handler)
    _fill(workflow)
    workflow.advance()
    assert workflow.current_step == 2

    outcome = asyncio.run(workflow.submit())
    assert not outcome.success
    assert outcome.message is None
    assert outcome.errors == {}
    assert sent == []
    assert workflow.current_step == 2
    print(" PASSED: Submit before last step")


def test_required_policy_blocks_submit():
    """Under the required-fields policy a missing consent blocks the request."""
    print("\nTEST 5: Required Policy Blocks Submit")
    print("-" * 40)

    from backend.step_controller import RequiredFieldsValidator

    sent = []

    def handler(request):
        sent.append(request)
        return httpx.Response(200, json=SUCCESS_BODY)

    workflow = _workflow(handler, validator=RequiredFieldsValidator())

    outcome = workflow.advance()
    assert not outcome.ok
    assert workflow.current_step == 1
    assert workflow.fields.get_error("first_name") == "First name is required"

    _fill(workflow)
    assert workflow.fields.get_error("first_name") is None
    _go_to_last_step(workflow)

    workflow.set_field("privacy_policy", False)
    outcome = asyncio.run(workflow.submit())
    assert not outcome.success
    assert outcome.errors == {"privacy_policy": "This consent is required"}
    assert sent == []

    workflow.set_field("privacy_policy", True)
    outcome = asyncio.run(workflow.submit())
    assert outcome.success
    assert len(sent) == 1
    print(" PASSED: Required policy blocks submit")


def test_inert_while_in_flight():
    """While a submission is outstanding, navigation and resubmit do nothing."""
    print("\nTEST 6: Inert While In Flight")
    print("-" * 40)

    sent = []

    async def scenario():
        started = asyncio.Event()
        release = asyncio.Event()

        async def handler(request):
            sent.append(request)
            started.set()
            await release.wait()
            return httpx.Response(200, json=SUCCESS_BODY)

        workflow = _workflow(handler)
        _go_to_last_step(workflow)

        first = asyncio.ensure_future(workflow.submit())
        await started.wait()
        assert workflow.is_submitting

        workflow.retreat()
        workflow.advance()
        assert workflow.current_step == 5

        second = await workflow.submit()
        assert not second.success
        assert second.message is None

        release.set()
        return workflow, await first

    workflow, outcome = asyncio.run(scenario())
    assert outcome.success
    assert len(sent) == 1
    assert workflow.current_step == 6
    print(" PASSED: Inert while in flight")


def test_presenter_requires_result():
    """The result view cannot be built before a successful submission."""
    print("\nTEST 7: Presenter Requires Result")
    print("-" * 40)

    from backend.result_presenter import ResultUnavailableError

    workflow = _workflow(lambda request: httpx.Response(200, json=SUCCESS_BODY))
    try:
        workflow.presenter()
        assert False, "Expected ResultUnavailableError"
    except ResultUnavailableError:
        print("   No result yet")
    print(" PASSED: Presenter requires result")


def test_cancel_returns_to_editing():
    """Cancelling mid-flight gives a quiet outcome and allows a retry."""
    print("\nTEST 8: Cancel Returns To Editing")
    print("-" * 40)

    from backend.submission_controller import CancellationToken

    sent = []

    async def scenario():
        started = asyncio.Event()

        async def handler(request):
            sent.append(request)
            if len(sent) == 1:
                started.set()
                await asyncio.sleep(5)
            return httpx.Response(200, json=SUCCESS_BODY)

        workflow = _workflow(handler)
        _go_to_last_step(workflow)
        assert not workflow.cancel()

        token = CancellationToken()
        pending = asyncio.ensure_future(workflow.submit(cancel_token=token))
        await started.wait()
        assert workflow.cancel()
        outcome = await pending
        assert not workflow.is_submitting

        retry = await workflow.submit()
        return workflow, outcome, retry

    workflow, outcome, retry = asyncio.run(scenario())
    assert not outcome.success
    assert outcome.cancelled
    assert outcome.message is None
    assert retry.success
    assert workflow.is_complete
    assert len(sent) == 2
    print(" PASSED: Cancel returns to editing")


def run_all_tests():
    """Run all intake workflow tests."""
    print("=" * 60)
    print("INTAKE WORKFLOW - TEST SUITE")
    print("=" * 60)

    tests = [
        test_successful_submission,
        test_server_error,
        test_empty_form_submitted,
        test_submit_before_last_step,
        test_required_policy_blocks_submit,
        test_inert_while_in_flight,
        test_presenter_requires_result,
        test_cancel_returns_to_editing,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            failed += 1
            print(f" FAILED: {test.__name__}")
            print(f"   Error: {e}")
            import traceback
            traceback.print_exc()

    print("\n" + "=" * 60)
    if failed == 0:
        print("All intake workflow tests passed!")
    else:
        print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    return failed == 0


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
