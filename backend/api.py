"""
FastAPI Demo Verification Service

Stands in for the remote identity-issuance service during local runs:
- Accepts the KYC submission payload
- Returns a mock DID, credential list and ledger publish result

No identity proofing, signing or ledger writes happen here; the responses
only follow the service's reply format.
"""

import hashlib
import json
import logging
import time
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from config.settings import settings
from config.intake_schema import TransformedPayload

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

# XRPL base58 alphabet
_ADDRESS_ALPHABET = "rpshnaf39wBUDNEGHJKLM4PQRST7VWXYZ2bcdeCg65jkm8oFqi1tuvAxyz"


# ============================================================================
# APP SETUP
# ============================================================================

app = FastAPI(
    title="KYC Verification Demo API",
    description="Mock DID issuance for the KYC intake flow",
    version=API_VERSION
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify allowed origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    api_version: str
    demo_mode: bool


def _failure(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


# ============================================================================
# MOCK ISSUANCE HELPERS
# ============================================================================

def _mock_address(seed: bytes) -> str:
    digest = hashlib.sha256(seed).digest()
    return "r" + "".join(_ADDRESS_ALPHABET[b % len(_ADDRESS_ALPHABET)] for b in digest[:24])


def _mock_credentials(did: str, payload: TransformedPayload) -> list[dict]:
    subject = {"id": did}
    return [
        {
            "type": ["VerifiableCredential", "KYCCredential"],
            "credentialSubject": {**subject, "documentType": payload.identity_documents[0].type},
        },
        {
            "type": ["VerifiableCredential", "AddressCredential"],
            "credentialSubject": {**subject, "country": payload.address_data.country},
        },
        {
            "type": ["VerifiableCredential", "FinancialProfileCredential"],
            "credentialSubject": {**subject, "incomeRange": payload.financial_info.income_range},
        },
    ]


def issue_mock_identity(payload: TransformedPayload) -> dict:
    """Build a success reply in the issuance service's format."""
    personal = payload.personal_info
    seed = "|".join([
        personal.email,
        personal.first_name,
        personal.last_name,
        payload.identity_documents[0].document_number,
        str(time.time()),
    ]).encode()

    address = _mock_address(seed)
    did = f"did:xrpl:1:{address}"
    tx_hash = hashlib.sha256(did.encode() + seed).hexdigest().upper()

    return {
        "success": True,
        "did": did,
        "address": address,
        "verifiableCredentials": _mock_credentials(did, payload),
        "publishResult": {
            "transactionHash": tx_hash,
            "explorerUrl": f"{settings.EXPLORER_BASE_URL}{tx_hash}",
        },
        "kycTimestamp": datetime.now(timezone.utc).isoformat(),
    }


# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.get("/", response_model=HealthResponse)
async def root():
    """Health check endpoint."""
    return HealthResponse(status="healthy", api_version=API_VERSION, demo_mode=settings.DEMO_MODE)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", api_version=API_VERSION, demo_mode=settings.DEMO_MODE)


@app.post(settings.SUBMIT_ENDPOINT_PATH)
async def submit_kyc(request: Request):
    """
    Accept a KYC payload and return an issued identity.

    Malformed bodies get 400 with {"success": false, "error": ...}.
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _failure(400, "Request body must be JSON")

    try:
        payload = TransformedPayload.model_validate(body)
    except ValidationError as e:
        logger.info(f"[Demo API] Rejected payload: {e.error_count()} field errors")
        return _failure(400, f"Invalid KYC payload ({e.error_count()} field errors)")

    if not payload.identity_documents:
        return _failure(400, "At least one identity document is required")

    if not settings.DEMO_MODE:
        return _failure(503, "Issuance backend is not configured")

    reply = issue_mock_identity(payload)
    logger.info(f"[Demo API] Issued {reply['did']}")
    return reply


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
