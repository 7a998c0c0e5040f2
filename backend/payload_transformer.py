"""
Payload Transformer - Maps the flat intake fields onto the nested schema
expected by the verification service.

Pure: no I/O and no state. The only non-input value is the address-proof
issue date, which is today's date unless one is passed in.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from config.intake_schema import (
    AddressData,
    AddressProofDocument,
    Consents,
    DocumentType,
    FieldSet,
    FinancialInfo,
    IdentityDocument,
    PersonalInfo,
    TransformedPayload,
    UNKNOWN_IP_ADDRESS,
)


# Form token -> backend document category
DOCUMENT_TYPE_RENAMES = {
    DocumentType.NATIONAL_ID.value: DocumentType.GOVERNMENT_ID.value,
}


def normalize_document_type(doc_type: str) -> str:
    """Rename form-only document tokens; everything else passes through."""
    return DOCUMENT_TYPE_RENAMES.get(doc_type, doc_type)


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def transform(field_set: FieldSet, today: Optional[date] = None) -> TransformedPayload:
    """
    Build the submission payload from a FieldSet.

    Accepts any FieldSet, including a completely empty one.

    Args:
        field_set: Current intake values
        today: Issue date for the synthesized address-proof document
               (defaults to the current UTC date)

    Returns:
        TransformedPayload ready for serialization
    """
    personal = field_set.personal
    identity = field_set.identity_document
    address = field_set.address
    financial = field_set.financial
    consents = field_set.consents
    issued_on = today or today_utc()

    return TransformedPayload(
        personal_info=PersonalInfo(
            first_name=personal.first_name,
            last_name=personal.last_name,
            date_of_birth=personal.date_of_birth,
            nationality=personal.nationality,
            phone_number=personal.phone_number,
            email=personal.email,
            gender=personal.gender,
            place_of_birth=personal.place_of_birth,
        ),
        identity_documents=[
            IdentityDocument(
                type=normalize_document_type(identity.identity_doc_type),
                document_number=identity.document_number,
                issue_date=identity.issue_date,
                expiry_date=identity.expiry_date,
                file=identity.identity_document,
            )
        ],
        address_data=AddressData(
            street=address.street,
            city=address.city,
            state=address.state,
            postal_code=address.postal_code,
            country=address.country,
        ),
        # The address document's own date is not collected from the user
        address_proof_document=AddressProofDocument(
            type=DocumentType.UTILITY_BILL.value,
            issue_date=issued_on.isoformat(),
            file=address.address_document,
        ),
        financial_info=FinancialInfo(
            income_range=financial.income_range,
            employment_status=financial.employment_status,
            source_of_funds=financial.source_of_funds,
            employer=financial.employer,
        ),
        consents=Consents(
            data_processing=consents.data_processing,
            kyc_verification=consents.kyc_verification,
            data_sharing=consents.data_sharing,
            terms_of_service=consents.terms_of_service,
            privacy_policy=consents.privacy_policy,
            ip_address=UNKNOWN_IP_ADDRESS,
        ),
    )


def to_wire(payload: TransformedPayload) -> Dict[str, Any]:
    """JSON-ready camelCase document for the request body."""
    return payload.model_dump(by_alias=True, mode="json")
