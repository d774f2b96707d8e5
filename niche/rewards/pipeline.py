"""Receipt intake pipeline.

Orchestrates: resolve image → OCR → normalise → fingerprint → classify →
persist → award points.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from .config import ScoringConfig
from .errors import AuthenticationError, DuplicateReceipt
from .extraction import parse_response
from .fingerprint import compute_fingerprint
from .models import ReceiptRecord, ReceiptStatus, ReceiptSubmission, SubmissionResult
from .scoring import calculate_points, classify_status

if TYPE_CHECKING:
    from .config import RewardsConfig
    from .db import ReceiptStore
    from .ocr import OCRBackend
    from .storage import ObjectStore

logger = logging.getLogger(__name__)


class ReceiptIntakePipeline:
    """Turns an uploaded receipt image into a scored, persisted receipt.

    Every external call happens at most once per submission; callers
    decide whether to resubmit.

    Object-store and receipt-store calls are synchronous and run on the
    event loop thread. A server hosting the pipeline should run each
    submission in its own worker rather than share one loop across
    requests.
    """

    def __init__(
        self,
        object_store: ObjectStore,
        ocr: OCRBackend,
        store: ReceiptStore,
        policy: ScoringConfig | None = None,
        url_ttl: int = 300,
    ) -> None:
        self._object_store = object_store
        self._ocr = ocr
        self._store = store
        self._policy = policy or ScoringConfig()
        self._url_ttl = url_ttl

    @property
    def object_store(self) -> ObjectStore:
        return self._object_store

    @property
    def store(self) -> ReceiptStore:
        return self._store

    async def submit(self, submission: ReceiptSubmission) -> SubmissionResult:
        """Process a queued :class:`ReceiptSubmission`."""
        return await self.submit_receipt(submission.user_id, submission.image_key)

    async def submit_receipt(self, user_id: str | None, image_key: str) -> SubmissionResult:
        """Process one receipt submission.

        Raises:
            AuthenticationError: If no user is given.
            UpstreamUnavailable: If the image URL or the OCR call fails.
            MalformedExtraction: If the OCR reply cannot be parsed.
            StoreError: If the insert fails for a reason other than a
                duplicate fingerprint.
        """
        if not user_id:
            raise AuthenticationError("Authentication required")

        image_url = self._object_store.resolve_readable_url(
            image_key, expires_in=self._url_ttl
        )

        logger.info("Reading receipt %s with %s", image_key, self._ocr.provider)
        raw_text = await self._ocr.extract(image_url)
        extracted = parse_response(raw_text, self._policy.default_currency)
        logger.info(
            "Extracted %s / %s / %d cents (confidence %.2f)",
            extracted.retailer,
            extracted.category,
            extracted.total_cents,
            extracted.confidence,
        )

        purchase_date = extracted.purchase_date or date.today()
        fingerprint = compute_fingerprint(
            extracted.retailer,
            purchase_date,
            extracted.total_cents,
            extracted.invoice_number,
        )
        status = classify_status(extracted.confidence, extracted.category, self._policy)
        points = calculate_points(extracted.total_cents, extracted.category, self._policy)

        record = ReceiptRecord(
            user_id=user_id,
            image_key=image_key,
            fingerprint=fingerprint,
            status=status,
            retailer=extracted.retailer,
            category=extracted.category,
            purchase_date=purchase_date.isoformat(),
            total_cents=extracted.total_cents,
            currency=extracted.currency,
            invoice_number=extracted.invoice_number,
            payment_method=extracted.payment_method,
            card_last_four=extracted.card_last_four,
            confidence=extracted.confidence,
            points=points if status is ReceiptStatus.APPROVED else 0,
            ocr_provider=self._ocr.provider,
            ocr_json=extracted.raw,
        )

        try:
            receipt_id = self._store.insert_receipt(record)
        except DuplicateReceipt:
            logger.info("Duplicate receipt %s from user %s", fingerprint, user_id)
            return SubmissionResult(
                status=ReceiptStatus.DUPLICATE,
                retailer=extracted.retailer,
                total_cents=extracted.total_cents,
            )
        logger.info("Receipt %s saved as %s", receipt_id, status.value)

        if status is not ReceiptStatus.APPROVED:
            return SubmissionResult(
                status=status,
                retailer=extracted.retailer,
                total_cents=extracted.total_cents,
                receipt_id=receipt_id,
            )

        award_pending = False
        try:
            self._store.award_points(receipt_id)
        except Exception:
            # The receipt stays approved; reconciliation re-drives the award.
            logger.exception(
                "Failed to award %d points for approved receipt %s", points, receipt_id
            )
            award_pending = True

        return SubmissionResult(
            status=status,
            retailer=extracted.retailer,
            total_cents=extracted.total_cents,
            points_awarded=points,
            receipt_id=receipt_id,
            award_pending=award_pending,
        )


def build_pipeline(config: RewardsConfig) -> ReceiptIntakePipeline:
    """Wire a pipeline from configuration."""
    from .db import create_store
    from .ocr import create_backend
    from .storage import create_object_store

    return ReceiptIntakePipeline(
        object_store=create_object_store(config),
        ocr=create_backend(config),
        store=create_store(config),
        policy=config.scoring,
        url_ttl=config.storage.url_ttl,
    )
