"""
Shared Powertools instances for the event processor.

Every pipeline stage logs, traces and emits metrics through these three
objects, so one invocation yields a single structured log stream, one X-Ray
trace and one EMF metrics blob flushed by the handler's ``log_metrics``.
"""

from aws_lambda_powertools.logging import Logger
from aws_lambda_powertools.metrics import Metrics
from aws_lambda_powertools.tracing import Tracer

# Passed explicitly, so it takes precedence over POWERTOOLS_METRICS_NAMESPACE
METRICS_NAMESPACE = 'ClientTrackingEvents'

logger: Logger = Logger()

# X-Ray segments per message; off outside Lambda or with POWERTOOLS_TRACE_DISABLED=true
tracer: Tracer = Tracer()

metrics = Metrics(namespace=METRICS_NAMESPACE)
