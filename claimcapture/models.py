from dataclasses import dataclass, field, fields
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple


@dataclass(frozen=True)
class SelectorStrategy:
    label: str
    patterns: Tuple[str, ...]

    def __post_init__(self):
        if isinstance(self.patterns, str):
            object.__setattr__(self, "patterns", (self.patterns,))
        else:
            object.__setattr__(self, "patterns", tuple(self.patterns))


def strategy(label, *patterns):
    return SelectorStrategy(label, patterns)


@dataclass(frozen=True)
class Resolved:
    ref: Any
    pattern: str
    label: str


class ObstructionState(Enum):
    UNKNOWN = "unknown"
    DETECTED = "detected"
    DISMISS_ATTEMPTED = "dismiss_attempted"
    DISMISSED = "dismissed"
    BLOCKED = "blocked"


class ReportSourceKind(Enum):
    GRID = "grid"
    TABLE = "table"
    EMBEDDED_FRAME = "embedded_frame"
    NESTED_EMBEDDED_FRAME = "nested_embedded_frame"
    PDF_DOCUMENT = "pdf_document"
    SPREADSHEET_EXPORT = "spreadsheet_export"
    NONE = "none"


@dataclass(frozen=True)
class ExtractionCandidate:
    text: str
    score: float = 0.0
    length: int = 0
    source_tag: str = ""
    nric: Optional[str] = None
    patient_name: Optional[str] = None
    qno: Optional[str] = None
    record_no: Optional[str] = None
    fee: Optional[float] = None
    pay_type: Optional[str] = None
    visit_type: Optional[str] = None
    status: Optional[str] = None
    in_time: Optional[str] = None
    out_time: Optional[str] = None
    contract: Optional[str] = None

    def __post_init__(self):
        if not self.length:
            object.__setattr__(self, "length", len(self.text or ""))

    def structured(self):
        out = {}
        for name in STRUCTURED_FIELDS:
            value = getattr(self, name)
            if value is not None and value != "":
                out[name] = value
        return out


STRUCTURED_FIELDS = (
    "nric", "patient_name", "qno", "record_no", "fee", "pay_type",
    "visit_type", "status", "in_time", "out_time", "contract",
)


@dataclass(frozen=True)
class Validation:
    is_valid: bool
    errors: Tuple[str, ...] = ()

    @classmethod
    def from_errors(cls, errors):
        errors = tuple(errors)
        return cls(not errors, errors)


@dataclass(frozen=True)
class FrameAccess:
    document: Any = None
    error: Optional[str] = None

    @property
    def ok(self):
        return self.document is not None and self.error is None


@dataclass(frozen=True)
class ClaimRecord:
    nric: Optional[str] = None
    patient_name: Optional[str] = None
    qno: Optional[str] = None
    record_no: Optional[str] = None
    pay_type: Optional[str] = None
    visit_type: Optional[str] = None
    fee_amount: Optional[float] = None
    diagnosis_text: Optional[str] = None
    notes_text: Optional[str] = None
    items: Tuple[str, ...] = ()
    referral_clinic: Optional[str] = None
    mc_days: int = 0
    status: Optional[str] = None
    sources: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    validation: Validation = Validation(False, ("not validated",))

    def to_dict(self):
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "items":
                value = list(value)
            elif f.name == "sources":
                value = dict(value)
            elif f.name == "validation":
                value = {"isValid": value.is_valid, "errors": list(value.errors)}
            out[f.name] = value
        return out


QueueItem = ClaimRecord
ClaimDetail = ClaimRecord

_RECORD_FIELDS = tuple(
    f.name for f in fields(ClaimRecord) if f.name not in ("sources", "validation")
)


class RecordBuilder:
    """Collects field values with their provenance before freezing a record."""

    def __init__(self):
        self._values = {}
        self._sources = {}

    def set(self, name, value, source):
        if name not in _RECORD_FIELDS:
            raise KeyError(name)
        if not source:
            raise ValueError(f"{name} needs a source tag")
        if value is None or value == "" or value == ():
            return False
        if name == "items":
            value = tuple(value)
        self._values[name] = value
        self._sources[name] = source
        return True

    def set_default(self, name, value, source):
        if name in self._values:
            return False
        return self.set(name, value, source)

    def get(self, name, default=None):
        return self._values.get(name, default)

    def source_of(self, name):
        return self._sources.get(name)

    def has(self, name):
        return name in self._values

    def build(self, validation):
        return ClaimRecord(
            sources=MappingProxyType(dict(self._sources)),
            validation=validation,
            **self._values,
        )
