"""
Client Tracking Event Processor - Source Package

This package contains the Lambda entry point and the service implementation
that ingests queued events and persists export-ready aggregates.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
]
