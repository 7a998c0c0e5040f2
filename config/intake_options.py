"""
Option catalogues for the intake form's select, radio and dropdown fields.
"""

from .intake_schema import DocumentType


COUNTRIES = [
    "United States",
    "United Kingdom",
    "Canada",
    "Australia",
    "Germany",
    "France",
    "Spain",
    "Italy",
    "Netherlands",
    "Sweden",
    "Norway",
    "Japan",
    "South Korea",
    "Singapore",
    "India",
    "Brazil",
    "Mexico",
]

INCOME_RANGES = [
    "0-20000",
    "20000-50000",
    "50000-75000",
    "75000-100000",
    "100000-200000",
    "200000+",
]

EMPLOYMENT_STATUSES = [
    "employed",
    "self-employed",
    "student",
    "unemployed",
    "retired",
]

GENDER_OPTIONS = ["male", "female", "other", "prefer-not-to-say"]

SOURCE_OF_FUNDS_OPTIONS = [
    "salary",
    "business-income",
    "investments",
    "inheritance",
    "savings",
    "other",
]

IDENTITY_DOCUMENT_OPTIONS = [
    {"value": DocumentType.PASSPORT.value, "label": "Passport"},
    {"value": DocumentType.NATIONAL_ID.value, "label": "National ID"},
    {"value": DocumentType.DRIVERS_LICENSE.value, "label": "Driver's License"},
]

CONSENT_LABELS = {
    "data_processing": "I consent to the processing of my personal data for KYC purposes",
    "kyc_verification": "I authorize identity verification against the documents I provided",
    "data_sharing": "I agree that verified claims may be shared as verifiable credentials",
    "terms_of_service": "I accept the Terms of Service",
    "privacy_policy": "I have read and accept the Privacy Policy",
}


def format_option(value: str) -> str:
    """Human label for a hyphenated option token, e.g. 'self-employed' -> 'Self Employed'."""
    return value.replace("-", " ").replace("_", " ").title()
