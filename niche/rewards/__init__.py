"""Receipt intake, scoring and loyalty points."""

from .config import (
    DatabaseConfig,
    OCRConfig,
    ReconcileConfig,
    RewardsConfig,
    ScoringConfig,
    StorageConfig,
    SupabaseConfig,
    load_config,
)
from .errors import (
    AuthenticationError,
    DuplicateReceipt,
    MalformedExtraction,
    RewardsError,
    StoreError,
    UpstreamUnavailable,
)
from .fingerprint import compute_fingerprint, normalize_retailer
from .models import (
    ExtractedReceipt,
    LedgerEntry,
    LineItem,
    ReceiptRecord,
    ReceiptStatus,
    ReceiptSubmission,
    SubmissionResult,
)
from .pipeline import ReceiptIntakePipeline, build_pipeline
from .scoring import calculate_points, classify_status

__all__ = [
    "ReceiptIntakePipeline",
    "build_pipeline",
    "ReceiptSubmission",
    "ExtractedReceipt",
    "LineItem",
    "ReceiptRecord",
    "ReceiptStatus",
    "LedgerEntry",
    "SubmissionResult",
    "compute_fingerprint",
    "normalize_retailer",
    "classify_status",
    "calculate_points",
    "RewardsError",
    "AuthenticationError",
    "UpstreamUnavailable",
    "MalformedExtraction",
    "StoreError",
    "DuplicateReceipt",
    "RewardsConfig",
    "StorageConfig",
    "OCRConfig",
    "ScoringConfig",
    "DatabaseConfig",
    "SupabaseConfig",
    "ReconcileConfig",
    "load_config",
]
