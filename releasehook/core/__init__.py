"""Core modules for releasehook."""

from .classifier import classify, parse_release_metadata, validate_release_metadata
from .orchestrator import WorkflowOrchestrator
from .rate_limit import RateLimiter
from .signature import SignatureValidator, generate_signature

__all__ = [
    "classify",
    "parse_release_metadata",
    "validate_release_metadata",
    "WorkflowOrchestrator",
    "RateLimiter",
    "SignatureValidator",
    "generate_signature",
]
