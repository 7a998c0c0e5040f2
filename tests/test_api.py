"""
Test Suite: Demo Verification API

Tests:
1. Health check endpoints
2. Successful submission reply format
3. Rejected request bodies
4. Full client round trip against the demo app
5. Settings validation
"""

import sys
import os
import asyncio
from datetime import date

import httpx

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def _wire_payload():
    from backend.payload_transformer import transform, to_wire
    from config.intake_schema import FieldSet, FileHandle

    fields = FieldSet()
    fields.personal.first_name = "Ada"
    fields.personal.last_name = "Lovelace"
    fields.personal.email = "ada@example.com"
    fields.identity_document.identity_doc_type = "national_id"
    fields.identity_document.document_number = "N998877"
    fields.identity_document.identity_document = FileHandle(name="id.jpg", content_type="image/jpeg", data=b"jpg")
    fields.address.country = "United Kingdom"
    fields.financial.income_range = "20000-50000"
    return to_wire(transform(fields, today=date(2026, 10, 18)))


def test_health_check():
    """Test health check endpoint."""
    print("\nTEST 1: Health Check Endpoint")
    print("-" * 40)

    from backend.api import app
    from fastapi.testclient import TestClient

    client = TestClient(app)

    for path in ("/", "/health"):
        response = client.get(path)
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "api_version" in data
        assert "demo_mode" in data
        print(f"   {path}: status={data['status']}")

    print(" PASSED: Health check endpoint")


def test_submit_success():
    """Demo service issues a DID in the expected reply format."""
    print("\nTEST 2: Submit Success")
    print("-" * 40)

    from backend.api import app
    from config.settings import settings
    from fastapi.testclient import TestClient

    client = TestClient(app)
    response = client.post(settings.SUBMIT_ENDPOINT_PATH, json=_wire_payload())
    assert response.status_code == 200

    data = response.json()
    assert data["success"] is True
    assert data["did"] == f"did:xrpl:1:{data['address']}"
    assert data["address"].startswith("r")
    assert len(data["verifiableCredentials"]) == 3
    assert data["verifiableCredentials"][0]["credentialSubject"]["documentType"] == "government_id"
    tx_hash = data["publishResult"]["transactionHash"]
    assert data["publishResult"]["explorerUrl"].endswith(tx_hash)
    assert "kycTimestamp" in data
    print(f"   Issued {data['did']}")
    print(" PASSED: Submit success")


def test_submit_rejected():
    """Bad bodies get 400 with success=false and an error message."""
    print("\nTEST 3: Submit Rejected")
    print("-" * 40)

    from backend.api import app
    from config.settings import settings
    from fastapi.testclient import TestClient

    client = TestClient(app)

    response = client.post(
        settings.SUBMIT_ENDPOINT_PATH,
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Request body must be JSON"}

    response = client.post(settings.SUBMIT_ENDPOINT_PATH, json={"personalInfo": {}})
    assert response.status_code == 400
    assert response.json()["success"] is False
    print(f"   {response.json()['error']}")

    payload = _wire_payload()
    payload["identityDocuments"] = []
    response = client.post(settings.SUBMIT_ENDPOINT_PATH, json=payload)
    assert response.status_code == 400
    assert "identity document" in response.json()["error"]

    print(" PASSED: Submit rejected")


def test_client_round_trip():
    """SubmissionController talking to the demo app through an ASGI transport."""
    print("\nTEST 4: Client Round Trip")
    print("-" * 40)

    from backend.api import app
    from backend.payload_transformer import transform
    from backend.result_presenter import ResultPresenter
    from backend.submission_controller import SubmissionController
    from backend.verification_client import VerificationClient
    from config.intake_schema import FieldSet
    from config.settings import settings

    client = VerificationClient(
        submit_url=f"http://demo.test{settings.SUBMIT_ENDPOINT_PATH}",
        transport=httpx.ASGITransport(app=app),
    )
    controller = SubmissionController(client=client, timeout=10.0)

    fields = FieldSet()
    fields.identity_document.identity_doc_type = "passport"
    result = asyncio.run(controller.submit(transform(fields)))

    view = ResultPresenter(result).view()
    assert view.did.startswith("did:xrpl:1:r")
    assert view.credential_types == ["KYCCredential", "AddressCredential", "FinancialProfileCredential"]
    assert view.explorer_url.startswith(settings.EXPLORER_BASE_URL)
    print(f"   {view.did} / {view.credentials_summary}")
    print(" PASSED: Client round trip")


def test_settings_validation():
    """Loaded settings are valid and build the submit URL."""
    print("\nTEST 5: Settings Validation")
    print("-" * 40)

    from config.settings import Settings, settings, validate_settings

    ok, issues = validate_settings()
    assert ok, issues
    assert settings.submit_url.endswith(settings.SUBMIT_ENDPOINT_PATH)
    assert settings.SUBMIT_TIMEOUT_SECONDS > 0

    # Only settings something reads are declared
    assert "DEBUG" not in Settings.model_fields
    assert set(Settings.model_fields) == {
        "VERIFICATION_API_URL", "SUBMIT_ENDPOINT_PATH", "SUBMIT_TIMEOUT_SECONDS",
        "VALIDATION_POLICY", "DEMO_MODE", "LOG_LEVEL", "EXPLORER_BASE_URL",
        "CREATE_FLOW_URL", "HOST", "PORT",
    }
    print(f"   Submit URL: {settings.submit_url}")
    print(" PASSED: Settings validation")


def run_all_tests():
    """Run all demo API tests."""
    print("=" * 60)
    print("DEMO VERIFICATION API - TEST SUITE")
    print("=" * 60)

    tests = [
        test_health_check,
        test_submit_success,
        test_submit_rejected,
        test_client_round_trip,
        test_settings_validation,
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
        print("All demo API tests passed!")
    else:
        print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    return failed == 0


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
