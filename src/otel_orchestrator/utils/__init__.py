"""Utility modules for the instrumentation orchestrator."""

from otel_orchestrator.utils.payload_extractor import (
    ExtractedPayload,
    extract_code,
    extract_json,
)

__all__ = [
    "ExtractedPayload",
    "extract_code",
    "extract_json",
]
