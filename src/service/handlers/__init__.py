"""
AWS Lambda Handlers Module.

Shared handler infrastructure for the Lambda entry points:

- models: environment variable configuration
- utils: observability, error taxonomy and execution deadline helpers
"""

from service.handlers.utils.observability import logger, tracer, metrics

__all__ = [
    "logger",
    "tracer",
    "metrics",
]
