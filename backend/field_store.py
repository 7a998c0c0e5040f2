"""
Field Store - Holds the current value of every intake field.

Provides:
- Generic set/get keyed by field name (used by form widgets)
- Typed setters per category
- Presentation-level validation errors, cleared when a field is edited
"""

from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from config.intake_schema import (
    CATEGORY_MODELS,
    FIELD_CATALOG,
    FieldCategory,
    FieldKind,
    FieldSet,
    FileHandle,
)


class UnknownFieldError(KeyError):
    """Raised for a field name outside the fixed intake field set."""


class FieldStore:
    """
    Owns one FieldSet for a single user session.

    Values are written through `set` (or a typed setter), which interprets
    checkbox fields as booleans, file fields as a single selected file, and
    stores text fields as strings (dates in ISO form). Nothing is validated
    here.
    """

    def __init__(self, field_set: Optional[FieldSet] = None):
        self._fields = field_set.model_copy(deep=True) if field_set else FieldSet()
        self._errors: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Generic access
    # ------------------------------------------------------------------

    @staticmethod
    def field_names() -> List[str]:
        return list(FIELD_CATALOG)

    @staticmethod
    def _lookup(field_name: str) -> tuple[FieldCategory, FieldKind]:
        try:
            return FIELD_CATALOG[field_name]
        except KeyError:
            raise UnknownFieldError(field_name) from None

    def _section(self, category: FieldCategory):
        return getattr(self._fields, category.value)

    def get(self, field_name: str) -> Any:
        """Current value of a field (its category default if never set)."""
        category, _ = self._lookup(field_name)
        return getattr(self._section(category), field_name)

    def set(self, field_name: str, value: Any) -> None:
        """Overwrite a field and clear any error recorded for it."""
        category, kind = self._lookup(field_name)
        setattr(self._section(category), field_name, _interpret(kind, value))
        self._errors.pop(field_name, None)

    # ------------------------------------------------------------------
    # Typed setters
    # ------------------------------------------------------------------

    def _set_category(self, category: FieldCategory, changes: Dict[str, Any]) -> None:
        model = CATEGORY_MODELS[category]
        unexpected = [name for name in changes if name not in model.model_fields]
        if unexpected:
            raise UnknownFieldError(
                f"{', '.join(unexpected)} not in {category.value} fields"
            )
        for name, value in changes.items():
            self.set(name, value)

    def set_personal(self, **changes: Any) -> None:
        self._set_category(FieldCategory.PERSONAL, changes)

    def set_identity_document(self, **changes: Any) -> None:
        self._set_category(FieldCategory.IDENTITY_DOCUMENT, changes)

    def set_address(self, **changes: Any) -> None:
        self._set_category(FieldCategory.ADDRESS, changes)

    def set_financial(self, **changes: Any) -> None:
        self._set_category(FieldCategory.FINANCIAL, changes)

    def set_consents(self, **changes: Any) -> None:
        self._set_category(FieldCategory.CONSENTS, changes)

    # ------------------------------------------------------------------
    # Errors and snapshots
    # ------------------------------------------------------------------

    @property
    def errors(self) -> Dict[str, str]:
        return dict(self._errors)

    def get_error(self, field_name: str) -> Optional[str]:
        return self._errors.get(field_name)

    def set_errors(self, errors: Dict[str, str]) -> None:
        """Replace all recorded errors (empty dict clears them)."""
        self._errors = dict(errors)

    def snapshot(self) -> FieldSet:
        """Deep copy of the current FieldSet."""
        return self._fields.model_copy(deep=True)


def _interpret(kind: FieldKind, value: Any) -> Any:
    if kind == FieldKind.BOOLEAN:
        return bool(value)

    if kind == FieldKind.FILE:
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            # Multiple selections: keep the first
            value = value[0] if len(value) else None
        if value is not None and not isinstance(value, FileHandle):
            raise TypeError(f"Expected a FileHandle, got {type(value).__name__}")
        return value

    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


__all__ = ["FieldStore", "UnknownFieldError", "FileHandle"]
