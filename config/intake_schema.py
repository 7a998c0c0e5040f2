"""
Intake schema definitions for the KYC form.
These models define the form field sections held by the FieldStore, the
backend-shaped submission payload, and the issuance result returned by the
verification service.
"""

import base64
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field, computed_field, field_serializer, field_validator
from pydantic.alias_generators import to_camel


class DocumentType(str, Enum):
    """Document type tokens used by the form and the verification service."""
    PASSPORT = "passport"
    NATIONAL_ID = "national_id"
    DRIVERS_LICENSE = "drivers_license"
    GOVERNMENT_ID = "government_id"
    UTILITY_BILL = "utility_bill"


class FieldCategory(str, Enum):
    """Sections of the intake form."""
    PERSONAL = "personal"
    IDENTITY_DOCUMENT = "identity_document"
    ADDRESS = "address"
    FINANCIAL = "financial"
    CONSENTS = "consents"


class FieldKind(str, Enum):
    """How a raw input value is interpreted when stored."""
    TEXT = "text"
    BOOLEAN = "boolean"
    FILE = "file"


UNKNOWN_IP_ADDRESS = "unknown"


class WireModel(BaseModel):
    """Base for models exchanged with the verification service (camelCase on the wire)."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


# =============================================================================
# FORM FIELDS
# =============================================================================

class FileHandle(WireModel):
    """A locally selected file. Read-only once selected."""
    name: str
    content_type: str = "application/octet-stream"
    data: bytes = b""

    class Config:
        frozen = True

    @computed_field
    @property
    def size(self) -> int:
        return len(self.data)

    @field_serializer("data", when_used="json")
    def encode_data(self, data: bytes) -> str:
        return base64.b64encode(data).decode("ascii")


class PersonalInfoFields(BaseModel):
    first_name: str = ""
    last_name: str = ""
    date_of_birth: str = ""
    nationality: str = ""
    phone_number: str = ""
    email: str = ""
    gender: str = ""
    place_of_birth: str = ""


class IdentityDocumentFields(BaseModel):
    identity_doc_type: str = ""
    document_number: str = ""
    issue_date: str = ""
    expiry_date: str = ""
    identity_document: Optional[FileHandle] = None


class AddressFields(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""
    address_document: Optional[FileHandle] = None


class FinancialFields(BaseModel):
    income_range: str = ""
    employment_status: str = ""
    source_of_funds: str = ""
    employer: str = ""
    payslip: Optional[FileHandle] = None


class ConsentFields(BaseModel):
    data_processing: bool = False
    kyc_verification: bool = False
    data_sharing: bool = False
    terms_of_service: bool = False
    privacy_policy: bool = False


class FieldSet(BaseModel):
    """
    Every intake field, grouped by category.
    A fresh FieldSet holds the default for every field: "", False or no file.
    """
    personal: PersonalInfoFields = Field(default_factory=PersonalInfoFields)
    identity_document: IdentityDocumentFields = Field(default_factory=IdentityDocumentFields)
    address: AddressFields = Field(default_factory=AddressFields)
    financial: FinancialFields = Field(default_factory=FinancialFields)
    consents: ConsentFields = Field(default_factory=ConsentFields)


CATEGORY_MODELS: Dict[FieldCategory, type] = {
    FieldCategory.PERSONAL: PersonalInfoFields,
    FieldCategory.IDENTITY_DOCUMENT: IdentityDocumentFields,
    FieldCategory.ADDRESS: AddressFields,
    FieldCategory.FINANCIAL: FinancialFields,
    FieldCategory.CONSENTS: ConsentFields,
}


def _field_kind(model: type, name: str) -> FieldKind:
    info = model.model_fields[name]
    if info.annotation is bool:
        return FieldKind.BOOLEAN
    if info.default is None:
        return FieldKind.FILE
    return FieldKind.TEXT


# field name -> (category, kind)
FIELD_CATALOG: Dict[str, tuple[FieldCategory, FieldKind]] = {
    name: (category, _field_kind(model, name))
    for category, model in CATEGORY_MODELS.items()
    for name in model.model_fields
}


# =============================================================================
# STEPS
# =============================================================================

class Step(BaseModel):
    """One page of the intake flow."""
    number: int
    title: str
    icon: str
    category: Optional[FieldCategory] = None

    class Config:
        frozen = True


INTAKE_STEPS: List[Step] = [
    Step(number=1, title="Personal Information", icon="👤", category=FieldCategory.PERSONAL),
    Step(number=2, title="Identity Documents", icon="🆔", category=FieldCategory.IDENTITY_DOCUMENT),
    Step(number=3, title="Address Verification", icon="🏠", category=FieldCategory.ADDRESS),
    Step(number=4, title="Financial Information", icon="💰", category=FieldCategory.FINANCIAL),
    Step(number=5, title="Consents", icon="✅", category=FieldCategory.CONSENTS),
]

RESULT_STEP_INFO = Step(number=len(INTAKE_STEPS) + 1, title="Verification Complete", icon="🎉")


# =============================================================================
# SUBMISSION PAYLOAD (backend schema)
# =============================================================================

class PersonalInfo(WireModel):
    first_name: str = ""
    last_name: str = ""
    date_of_birth: str = ""
    nationality: str = ""
    phone_number: str = ""
    email: str = ""
    gender: str = ""
    place_of_birth: str = ""


class IdentityDocument(WireModel):
    type: str = ""
    document_number: str = ""
    issue_date: str = ""
    expiry_date: str = ""
    file: Optional[FileHandle] = None


class AddressData(WireModel):
    street: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""


class AddressProofDocument(WireModel):
    type: str = DocumentType.UTILITY_BILL.value
    issue_date: str
    file: Optional[FileHandle] = None


class FinancialInfo(WireModel):
    income_range: str = ""
    employment_status: str = ""
    source_of_funds: str = ""
    employer: str = ""


class Consents(WireModel):
    data_processing: bool = False
    kyc_verification: bool = False
    data_sharing: bool = False
    terms_of_service: bool = False
    privacy_policy: bool = False
    ip_address: str = UNKNOWN_IP_ADDRESS


class TransformedPayload(WireModel):
    """Server-ready restructuring of the raw form fields."""
    personal_info: PersonalInfo
    identity_documents: List[IdentityDocument]
    address_data: AddressData
    address_proof_document: AddressProofDocument
    financial_info: FinancialInfo
    consents: Consents


# =============================================================================
# SUBMISSION RESULT
# =============================================================================

class PublishResult(BaseModel):
    """Ledger confirmation for the issued identity record."""
    transaction_hash: str = Field(
        validation_alias=AliasChoices("transactionHash", "txHash", "transaction_hash"),
        serialization_alias="transactionHash",
    )
    explorer_url: str = Field(
        validation_alias=AliasChoices("explorerUrl", "explorer_url"),
        serialization_alias="explorerUrl",
    )

    class Config:
        frozen = True
        extra = "allow"


class SubmissionResult(WireModel):
    """Issued identity summary. Immutable once produced."""
    did: str
    address: str
    verifiable_credentials: List[Any] = Field(default_factory=list)
    publish_result: PublishResult
    kyc_timestamp: Optional[str] = None

    class Config:
        frozen = True

    @field_validator("kyc_timestamp", mode="before")
    @classmethod
    def timestamp_as_text(cls, value: Any) -> Any:
        # Services may send epoch seconds instead of an ISO string
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


# =============================================================================
# WALLET (read-only context for the page header)
# =============================================================================

class WalletContext(BaseModel):
    """Connection state supplied by the wallet integration. Never feeds the FieldSet."""
    is_connected: bool = False
    address: Optional[str] = None
    wallet_type: Optional[str] = None


def truncate_address(address: Optional[str]) -> str:
    """Shorten a wallet address for display, e.g. rAbC12...9xYz."""
    if not address:
        return ""
    return f"{address[:6]}...{address[-4:]}"
