"""Public interface for the ``finance_ingest`` package.

Symbol re-exports only; see the individual modules for behavior.
"""

from .classifier import classify
from .dedupe import deduplicate
from .detect import detect_source
from .fields import FieldSpec
from .ids import sequential_ids, uuid_ids
from .models import (
    AppState,
    Category,
    Classification,
    ImportSummary,
    Source,
    Status,
    Transaction,
    TxType,
)
from .normalize import parse_amount, parse_date
from .pipeline import BatchResult, ImportResult, IngestionPipeline, SourceFile
from .review import BulkApprove, EditTransaction, apply, review_queue
from .tabular import UnparseableFileError
from .transfers import detect_transfer_pairs, flag_transfer_pairs

__all__ = [
    # Pipeline
    "IngestionPipeline",
    "ImportResult",
    "BatchResult",
    "SourceFile",
    "UnparseableFileError",
    # Components
    "FieldSpec",
    "parse_amount",
    "parse_date",
    "classify",
    "detect_source",
    "deduplicate",
    "detect_transfer_pairs",
    "flag_transfer_pairs",
    "sequential_ids",
    "uuid_ids",
    # Review
    "EditTransaction",
    "BulkApprove",
    "apply",
    "review_queue",
    # Models
    "AppState",
    "Category",
    "Classification",
    "ImportSummary",
    "Source",
    "Status",
    "Transaction",
    "TxType",
]
