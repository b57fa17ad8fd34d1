"""
Tests for the background comparison task, run in-process.
"""

import fitz
import pytest

from redline.services.comparison_service import ComparisonService
from redline.services.llm_service import NarrativeService
from redline.workers.tasks import compare_documents_task


def write_pdf(path, text):
    doc = fitz.open()
    doc.new_page().insert_text((72, 72), text, fontsize=11)
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def local_task(monkeypatch):
    """The comparison task without a broker, result backend or LLM."""
    service = ComparisonService(narrative_service=NarrativeService(summarizer=None))
    monkeypatch.setattr(compare_documents_task, "_comparison_service", service)
    monkeypatch.setattr(compare_documents_task, "report_progress", lambda job_id, step, progress: None)
    return compare_documents_task


def test_task_completes_and_cleans_up(local_task, tmp_path):
    """A successful run returns a completed job result and removes the uploads."""
    pdf1 = write_pdf(tmp_path / "job_1.pdf", "1. Introduction\nHello world")
    pdf2 = write_pdf(tmp_path / "job_2.pdf", "1. Introduction\nHello world")

    data = local_task.run(
        job_id="job",
        pdf1_path=str(pdf1),
        pdf2_path=str(pdf2),
        document_a_name="v1.pdf",
        document_b_name="v2.pdf"
    )

    assert data["jobId"] == "job"
    assert data["status"] == "completed"
    assert data["result"]["documentAName"] == "v1.pdf"
    assert data["result"]["overallSimilarity"] == 1.0
    assert not pdf1.exists()
    assert not pdf2.exists()


def test_task_reports_extraction_failure(local_task, tmp_path):
    """Unreadable uploads fail the job without retrying."""
    pdf1 = tmp_path / "job_1.pdf"
    pdf1.write_bytes(b"this is not a pdf file " * 20)
    pdf2 = write_pdf(tmp_path / "job_2.pdf", "Some text")

    data = local_task.run(job_id="job", pdf1_path=str(pdf1), pdf2_path=str(pdf2))

    assert data["status"] == "failed"
    assert data["errorDetails"]["exc_type"] == "PDFProcessingError"
    assert not pdf1.exists()
    assert not pdf2.exists()
