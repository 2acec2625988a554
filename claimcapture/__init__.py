from .assembler import ClaimAssembler
from .models import (
    ClaimDetail,
    ClaimRecord,
    ExtractionCandidate,
    ObstructionState,
    QueueItem,
    ReportSourceKind,
    SelectorStrategy,
    Validation,
)

__version__ = "0.3.0"
