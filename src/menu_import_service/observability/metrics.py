"""Custom metrics for the menu import service."""

from opentelemetry import metrics

# Get meter for import service
meter = metrics.get_meter("menu-import-svc")

import_success_counter = meter.create_counter(
    name="menu_import_job_success_total",
    description="Total number of import jobs that reached READY",
    unit="1",
)

import_failure_counter = meter.create_counter(
    name="menu_import_job_failure_total",
    description="Total number of import jobs that ended FAILED by error type",
    unit="1",
)

import_duration_histogram = meter.create_histogram(
    name="menu_import_duration_seconds",
    description="Duration of import pipeline runs",
    unit="s",
)

extraction_chunks_counter = meter.create_counter(
    name="menu_import_chunks_total",
    description="Total number of text chunks sent to the AI service by strategy",
    unit="1",
)

suspicious_input_counter = meter.create_counter(
    name="menu_import_suspicious_input_total",
    description="Chunks in which prompt-injection patterns were neutralized",
    unit="1",
)

ai_api_response_time = meter.create_histogram(
    name="ai_api_response_time_seconds",
    description="Response time for AI completion calls",
    unit="s",
)


def record_import_success(item_count: int) -> None:  # noqa: ARG001
    """Record an import job that produced a reviewable diff.

    Args:
        item_count: Number of extracted items
    """
    import_success_counter.add(1)


def record_import_failure(error_type: str) -> None:
    """Record a failed import job.

    Args:
        error_type: Exception class name that failed the job
    """
    import_failure_counter.add(1, {"error_type": error_type})


def record_import_duration(duration_seconds: float, status: str) -> None:
    import_duration_histogram.record(duration_seconds, {"status": status})


def record_extraction_chunks(chunk_count: int, strategy: str) -> None:
    extraction_chunks_counter.add(chunk_count, {"strategy": strategy})


def record_suspicious_input() -> None:
    suspicious_input_counter.add(1)


def record_ai_api_call(strategy: str, duration_seconds: float) -> None:
    """Record an AI completion call.

    Args:
        strategy: "structured" or "text"
        duration_seconds: Duration in seconds
    """
    ai_api_response_time.record(duration_seconds, {"strategy": strategy})
