"""OpenTelemetry tracing of planner runs.

Every :meth:`CompressionPlanner.plan` call is one ``planner/plan`` span.
Planned jobs and plan errors become events on that span.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING

from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor, SpanExporter
from opentelemetry.trace import NoOpTracer, Span, Tracer

if TYPE_CHECKING:
    from .assets import CompressionJob
    from .config import PlannerSettings
    from .errors import PlanError

_log = logging.getLogger(__name__)

SERVICE_NAME = "swa-compress"

PLAN_SPAN = "planner/plan"
JOB_EVENT = "planner/job"
ERROR_EVENT = "planner/error"


def _span_exporter(name: str) -> SpanExporter | None:
    if name == "stdout":
        return ConsoleSpanExporter()
    if name == "otlp":
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
                OTLPSpanExporter,
            )
        except ImportError:  # pragma: no cover
            _log.warning(
                "OTLP exporter not installed (pip install swa-compress[otlp]); tracing disabled"
            )
            return None
        # Endpoint comes from OTEL_EXPORTER_OTLP_ENDPOINT.
        return OTLPSpanExporter()
    return None


# ---------------------------------------------------------------------------
# PlanSpan
# ---------------------------------------------------------------------------


class PlanSpan:
    """The span of one planner run."""

    def __init__(self, span: Span) -> None:
        self._span = span

    def job(self, job: CompressionJob) -> None:
        self._span.add_event(
            JOB_EVENT,
            {
                "job.source": job.source_identity,
                "job.format": job.format.value,
                "job.output": job.output_path,
            },
        )

    def error(self, err: PlanError) -> None:
        self._span.add_event(ERROR_EVENT, {"error.code": err.code.value})

    def finish(self, job_count: int, success: bool) -> None:  # noqa: FBT001
        self._span.set_attribute("planner.jobs", job_count)
        self._span.set_attribute("planner.success", success)


# ---------------------------------------------------------------------------
# PlannerTracer
# ---------------------------------------------------------------------------


class PlannerTracer:
    """Opens planner spans on a ``TracerProvider``.

    Without a provider the tracer is a no-op, which is what the planner uses
    unless one is configured.
    """

    def __init__(self, provider: TracerProvider | None = None) -> None:
        self._provider = provider
        self._tracer: Tracer = (
            provider.get_tracer(SERVICE_NAME) if provider is not None else NoOpTracer()
        )

    @classmethod
    def from_settings(cls, settings: PlannerSettings) -> PlannerTracer:
        """Build a tracer exporting to ``settings.trace_exporter``."""
        exporter = _span_exporter(settings.trace_exporter)
        if exporter is None:
            return cls()
        provider = TracerProvider(resource=Resource.create({"service.name": SERVICE_NAME}))
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        return cls(provider)

    @property
    def enabled(self) -> bool:
        return self._provider is not None

    @contextlib.contextmanager
    def plan_run(self, candidate_count: int, request_count: int) -> Iterator[PlanSpan]:
        attributes = {
            "planner.candidates": candidate_count,
            "planner.explicit_requests": request_count,
        }
        with self._tracer.start_as_current_span(PLAN_SPAN, attributes=attributes) as span:
            yield PlanSpan(span)

    def shutdown(self) -> None:
        """Flush pending spans. Safe to call more than once."""
        if self._provider is not None:
            self._provider.shutdown()
            self._provider = None
