"""
Celery Tasks for Document Comparison

This module defines the background task that extracts and compares two PDFs.
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, Optional

from celery import Task

from redline.core.config import get_settings
from redline.core.logging import bind_log_context, get_logger
from redline.models.comparison import ComparisonJobResult, ComparisonStatus, utc_now
from redline.services.comparison_service import ComparisonService
from redline.services.pdf_processor import PDFProcessingError, PDFProcessor
from redline.workers.celery_app import celery_app

logger = get_logger(__name__)


class ComparisonTask(Task):
    """Base task class with shared setup."""

    _pdf_processor = None
    _comparison_service = None

    @property
    def pdf_processor(self) -> PDFProcessor:
        """Lazy-load PDF processor."""
        if self._pdf_processor is None:
            self._pdf_processor = PDFProcessor()
        return self._pdf_processor

    @property
    def comparison_service(self) -> ComparisonService:
        """Lazy-load comparison service."""
        if self._comparison_service is None:
            self._comparison_service = ComparisonService()
        return self._comparison_service

    def report_progress(self, job_id: str, step: str, progress: int) -> None:
        """Publish a PROCESSING state with the current step."""
        self.update_state(
            state="PROCESSING",
            meta={
                "job_id": job_id,
                "status": ComparisonStatus.PROCESSING.value,
                "current_step": step,
                "progress": progress
            }
        )


@celery_app.task(
    bind=True,
    base=ComparisonTask,
    name="compare_documents",
    max_retries=get_settings().celery_max_retries,
    default_retry_delay=60
)
def compare_documents_task(
    self,
    job_id: str,
    pdf1_path: str,
    pdf2_path: str,
    document_a_name: Optional[str] = None,
    document_b_name: Optional[str] = None
) -> Dict[str, Any]:
    """
    Compare two PDF documents in the background.

    Steps:
    1. Extract both PDFs into page-aware documents
    2. Run the comparison pipeline
    3. Wrap the outcome in a job result

    Args:
        job_id: Unique job identifier
        pdf1_path: Path to the original PDF
        pdf2_path: Path to the revised PDF
        document_a_name: Display name of the original (defaults to file name)
        document_b_name: Display name of the revised (defaults to file name)

    Returns:
        ComparisonJobResult as a JSON-ready dictionary
    """
    start_time = utc_now()
    retrying = False
    bind_log_context(job_id=job_id, document_a=document_a_name, document_b=document_b_name)

    logger.info(
        "comparison_task_started",
        pdf1=pdf1_path,
        pdf2=pdf2_path,
        attempt=self.request.retries + 1
    )

    try:
        self.report_progress(job_id, "Extracting first document", 10)
        document_a = self.pdf_processor.extract_document(Path(pdf1_path), name=document_a_name)

        self.report_progress(job_id, "Extracting second document", 30)
        document_b = self.pdf_processor.extract_document(Path(pdf2_path), name=document_b_name)

        self.report_progress(job_id, "Comparing documents", 50)
        result = asyncio.run(self.comparison_service.compare_documents(document_a, document_b))

        self.report_progress(job_id, "Finalizing results", 90)

        end_time = utc_now()
        processing_time = (end_time - start_time).total_seconds()

        job_result = ComparisonJobResult(
            job_id=job_id,
            status=ComparisonStatus.COMPLETED,
            created_at=start_time,
            completed_at=end_time,
            processing_time_seconds=processing_time,
            result=result
        )

        logger.info(
            "comparison_task_completed",
            processing_time=processing_time,
            overall_similarity=result.overall_similarity,
            segments=len(result.diff_segments)
        )

        return job_result.model_dump(by_alias=True, mode="json")

    except Exception as e:
        logger.error(
            "comparison_task_failed",
            error=str(e),
            exc_info=True
        )

        # Extraction failures are not retried
        if not isinstance(e, PDFProcessingError) and self.request.retries < self.max_retries:
            logger.warning(
                "comparison_task_retrying",
                retry=self.request.retries + 1,
                max_retries=self.max_retries
            )
            retrying = True
            raise self.retry(exc=e, countdown=60)

        end_time = utc_now()
        error_result = ComparisonJobResult(
            job_id=job_id,
            status=ComparisonStatus.FAILED,
            created_at=start_time,
            completed_at=end_time,
            processing_time_seconds=(end_time - start_time).total_seconds(),
            error=str(e),
            error_details={"exc_type": type(e).__name__}
        )

        return error_result.model_dump(by_alias=True, mode="json")

    finally:
        if not retrying:
            self.pdf_processor.cleanup_temp_files([Path(pdf1_path), Path(pdf2_path)])

