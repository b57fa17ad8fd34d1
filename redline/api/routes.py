"""
API Routes for the Document Comparison Service

This module defines all HTTP endpoints for the service.
"""

import uuid
from functools import lru_cache
from pathlib import Path
from typing import List, Tuple

from fastapi import APIRouter, File, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response

from redline.core.config import get_settings
from redline.core.logging import bind_log_context, get_logger
from redline.models.comparison import (
    ComparisonJobResult,
    ComparisonResult,
    ComparisonStatus,
    HealthCheck,
    JobStatus,
)
from redline.services.comparison_service import ComparisonService
from redline.services.pdf_processor import PDFProcessingError, PDFProcessor
from redline.services.report_service import ReportService
from redline.workers.celery_app import celery_app
from redline.workers.tasks import compare_documents_task

logger = get_logger(__name__)
router = APIRouter()
settings = get_settings()


@lru_cache()
def get_pdf_processor() -> PDFProcessor:
    return PDFProcessor()


@lru_cache()
def get_comparison_service() -> ComparisonService:
    return ComparisonService()


@lru_cache()
def get_report_service() -> ReportService:
    return ReportService()


async def read_uploads(files: List[UploadFile]) -> List[bytes]:
    """
    Validate uploaded files and return their contents.

    Raises:
        HTTPException: 400 for non-PDF uploads, 413 for oversize uploads
    """
    for file in files:
        if not (file.filename or "").lower().endswith(".pdf"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"File {file.filename} is not a PDF"
            )

    contents = []
    for file in files:
        content = await file.read()
        if len(content) > settings.max_file_size_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File {file.filename} exceeds maximum size of {settings.max_file_size_mb}MB"
            )
        contents.append(content)

    return contents


@router.post("/compare")
async def compare_documents(
    file1: UploadFile = File(..., description="Original PDF file"),
    file2: UploadFile = File(..., description="Revised PDF file")
):
    """
    Compare two PDF documents and return the result directly.

    Args:
        file1: Original PDF file (document A)
        file2: Revised PDF file (document B)

    Returns:
        Comparison result with camelCase field names
    """
    bind_log_context(document_a=file1.filename, document_b=file2.filename)
    logger.info("compare_request_received")

    content1, content2 = await read_uploads([file1, file2])

    try:
        processor = get_pdf_processor()
        document_a = await run_in_threadpool(processor.extract_document_from_bytes, content1, file1.filename)
        document_b = await run_in_threadpool(processor.extract_document_from_bytes, content2, file2.filename)
    except PDFProcessingError as e:
        logger.warning("compare_extraction_failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Failed to extract text: {e}"
        )

    result = await get_comparison_service().compare_documents(document_a, document_b)

    return JSONResponse(content=result.to_json_dict())


@router.post("/compare/async", status_code=status.HTTP_202_ACCEPTED)
async def submit_comparison(
    file1: UploadFile = File(..., description="Original PDF file"),
    file2: UploadFile = File(..., description="Revised PDF file")
):
    """
    Submit a background comparison job.

    The job ID is returned immediately, and the client can poll for results.

    Args:
        file1: Original PDF file (document A)
        file2: Revised PDF file (document B)

    Returns:
        Job information with job_id for tracking
    """
    bind_log_context(document_a=file1.filename, document_b=file2.filename)
    logger.info("compare_job_request_received")

    content1, content2 = await read_uploads([file1, file2])

    try:
        # Generate job ID
        job_id = uuid.uuid4().hex
        bind_log_context(job_id=job_id)

        # Save uploaded files temporarily
        temp_dir = Path(settings.temp_dir)
        temp_dir.mkdir(parents=True, exist_ok=True)

        pdf1_path = temp_dir / f"{job_id}_1.pdf"
        pdf2_path = temp_dir / f"{job_id}_2.pdf"

        pdf1_path.write_bytes(content1)
        pdf2_path.write_bytes(content2)

        logger.info(
            "files_saved",
            job_id=job_id,
            pdf1=str(pdf1_path),
            pdf2=str(pdf2_path)
        )

        # Submit Celery task
        task = compare_documents_task.apply_async(
            kwargs={
                "job_id": job_id,
                "pdf1_path": str(pdf1_path),
                "pdf2_path": str(pdf2_path),
                "document_a_name": file1.filename,
                "document_b_name": file2.filename
            },
            task_id=job_id
        )

        logger.info(
            "task_submitted",
            job_id=job_id,
            task_id=task.id
        )

        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content={
                "jobId": job_id,
                "status": ComparisonStatus.PENDING.value,
                "message": "Comparison job submitted successfully",
                "pollUrl": f"/api/v1/jobs/{job_id}",
                "resultsUrl": f"/api/v1/results/{job_id}"
            }
        )

    except Exception as e:
        logger.error(
            "compare_job_submission_failed",
            error=str(e),
            exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to submit comparison job: {str(e)}"
        )


@router.get("/jobs/{job_id}")
async def get_job_status(job_id: str):
    """
    Get the status of a comparison job.

    Args:
        job_id: Job identifier

    Returns:
        Job status information
    """
    bind_log_context(job_id=job_id)
    logger.debug("job_status_requested", job_id=job_id)

    try:
        task_result = celery_app.AsyncResult(job_id)
        info = task_result.info if isinstance(task_result.info, dict) else {}

        # Map Celery state to our status
        if task_result.state == "PENDING":
            job_status = ComparisonStatus.PENDING
            message = "Job is pending"
            progress = 0
        elif task_result.state in ("PROCESSING", "STARTED", "RETRY"):
            job_status = ComparisonStatus.PROCESSING
            message = info.get("current_step", "Processing")
            progress = info.get("progress", 50)
        elif task_result.state == "SUCCESS":
            result_data = task_result.result or {}
            if result_data.get("status") == ComparisonStatus.FAILED.value:
                job_status = ComparisonStatus.FAILED
                message = f"Job failed: {result_data.get('error')}"
                progress = 0
            else:
                job_status = ComparisonStatus.COMPLETED
                message = "Job completed successfully"
                progress = 100
        elif task_result.state == "FAILURE":
            job_status = ComparisonStatus.FAILED
            message = f"Job failed: {str(task_result.info)}"
            progress = 0
        elif task_result.state == "REVOKED":
            job_status = ComparisonStatus.CANCELLED
            message = "Job was cancelled"
            progress = 0
        else:
            job_status = ComparisonStatus.PROCESSING
            message = f"Job status: {task_result.state}"
            progress = 50

        job = JobStatus(
            job_id=job_id,
            status=job_status,
            progress_percentage=progress,
            message=message,
            current_step=info.get("current_step")
        )

        return JSONResponse(content=job.model_dump(by_alias=True, mode="json"))

    except Exception as e:
        logger.error(
            "job_status_failed",
            job_id=job_id,
            error=str(e)
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get job status: {str(e)}"
        )


@router.get("/results/{job_id}")
async def get_comparison_results(job_id: str):
    """
    Get the results of a completed comparison job.

    Args:
        job_id: Job identifier

    Returns:
        Job result wrapping the comparison result

    Raises:
        HTTPException: If job not found, still processing, or failed
    """
    bind_log_context(job_id=job_id)
    logger.info("results_requested", job_id=job_id)

    try:
        task_result = celery_app.AsyncResult(job_id)

        if task_result.state == "PENDING":
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Job not found or not yet started"
            )

        if task_result.state in ("PROCESSING", "STARTED", "RETRY"):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Job is still processing. Check job status first."
            )

        if task_result.state == "FAILURE":
            error_msg = str(task_result.info)
            logger.error("job_failed", job_id=job_id, error=error_msg)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Job failed: {error_msg}"
            )

        if task_result.state == "SUCCESS":
            job_result = ComparisonJobResult.model_validate(task_result.result)
            logger.info(
                "results_retrieved",
                job_id=job_id,
                status=job_result.status.value
            )

            if job_result.status == ComparisonStatus.FAILED:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail=f"Job failed: {job_result.error}"
                )

            return JSONResponse(content=job_result.model_dump(by_alias=True, mode="json"))

        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Unexpected job state: {task_result.state}"
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "results_retrieval_failed",
            job_id=job_id,
            error=str(e),
            exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve results: {str(e)}"
        )


@router.post("/export")
async def export_report(result: ComparisonResult):
    """
    Render a comparison result as a PDF report.

    Args:
        result: Comparison result as returned by the compare endpoints

    Returns:
        PDF document
    """
    logger.info(
        "export_requested",
        document_a=result.document_a_name,
        document_b=result.document_b_name
    )

    pdf_bytes = await run_in_threadpool(get_report_service().generate_pdf_report, result)

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="comparison-report.pdf"'}
    )


def probe_workers() -> Tuple[bool, int]:
    """
    Check broker connectivity and count live workers.

    Returns:
        Tuple of (broker_connected, worker_count)
    """
    broker_connected = False
    try:
        with celery_app.connection() as connection:
            connection.ensure_connection(max_retries=1)
        broker_connected = True
    except Exception as e:
        logger.warning("broker_health_check_failed", error=str(e))

    worker_count = 0
    if broker_connected:
        stats = celery_app.control.inspect(timeout=1.0).stats()
        worker_count = len(stats) if stats else 0

    return broker_connected, worker_count


@router.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns:
        Service health status
    """
    try:
        broker_connected, worker_count = await run_in_threadpool(probe_workers)

        health = HealthCheck(
            status="healthy" if broker_connected else "degraded",
            version=settings.api_version,
            broker_connected=broker_connected,
            celery_workers=worker_count,
            llm_configured=settings.validate_llm_config()
        )

    except Exception as e:
        logger.error("health_check_failed", error=str(e))
        health = HealthCheck(
            status="unhealthy",
            version=settings.api_version,
            broker_connected=False,
            celery_workers=0,
            llm_configured=False
        )

    return JSONResponse(content=health.model_dump(by_alias=True, mode="json"))


@router.delete("/jobs/{job_id}")
async def cancel_job(job_id: str):
    """
    Cancel a running job.

    Args:
        job_id: Job identifier

    Returns:
        Cancellation confirmation
    """
    bind_log_context(job_id=job_id)
    logger.info("job_cancellation_requested", job_id=job_id)

    try:
        celery_app.control.revoke(job_id, terminate=True)

        return {
            "jobId": job_id,
            "status": ComparisonStatus.CANCELLED.value,
            "message": "Job cancellation requested"
        }

    except Exception as e:
        logger.error("job_cancellation_failed", job_id=job_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to cancel job: {str(e)}"
        )
