"""Compression planner: decides which (asset, format) pairs to compress and where.

Three selection mechanisms feed one plan:

1. explicit requests, one asset and one format each, bypassing patterns;
2. include/exclude glob patterns matched against each candidate's paths;
3. the format list, applied to every pattern-matched candidate.

Candidates that are themselves output of an earlier run (linked to another
candidate through ``original_source_path`` and carrying a known suffix) mark
their ``(source, format)`` pair as already produced. Such pairs are never
scheduled again, which keeps repeated incremental runs stable without any
state kept between calls.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from .assets import Asset, CompressionJob, ExplicitRequest
from .errors import ConfigurationError, ErrorCode, PlanError
from .formats import CompressionFormat, format_from_suffix, format_from_tag, parse_formats
from .globbing import PathMatcher, PatternSet
from .telemetry import PlannerTracer, PlanSpan

_log = logging.getLogger(__name__)

_Key = tuple[str, CompressionFormat]


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass
class PlanResult:
    """Ordered jobs plus the outcome of a planner run."""

    jobs: list[CompressionJob] = field(default_factory=list)
    errors: list[PlanError] = field(default_factory=list)
    produced_artifacts: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def produced_assets(self) -> list[Asset]:
        """Assets the jobs will create, ready to be fed into the next run."""
        return [job.to_asset() for job in self.jobs]

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "jobs": [job.to_dict() for job in self.jobs],
            "errors": [err.to_dict() for err in self.errors],
            "produced_artifacts": list(self.produced_artifacts),
        }


# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------


def find_produced(candidates: Sequence[Asset]) -> tuple[set[_Key], list[str]]:
    """Return already-produced ``(source identity, format)`` pairs and the artifact identities.

    A candidate counts as a produced artifact when its back-reference names
    another candidate and its path ends with a known format suffix.
    """
    identities = {asset.identity for asset in candidates}
    produced: set[_Key] = set()
    artifacts: list[str] = []
    for asset in candidates:
        origin = asset.original_source_path
        if not origin or origin == asset.identity or origin not in identities:
            continue
        fmt = format_from_suffix(asset.identity) or format_from_suffix(asset.relative_path)
        if fmt is None:
            continue
        produced.add((origin, fmt))
        artifacts.append(asset.identity)
    return produced, artifacts


class CompressionPlanner:
    """Builds a deduplicated, idempotent compression plan.

    The planner is stateless: every call to :meth:`plan` works only from the
    inputs it is given, so one instance may be shared freely.
    """

    def __init__(
        self,
        matcher: PathMatcher | None = None,
        tracer: PlannerTracer | None = None,
    ) -> None:
        self._matcher = matcher
        self._tracer = tracer if tracer is not None else PlannerTracer()

    def plan(
        self,
        candidates: Iterable[Asset],
        explicit_requests: Iterable[ExplicitRequest] = (),
        include_patterns: str | Iterable[str] | None = None,
        exclude_patterns: str | Iterable[str] | None = None,
        formats: str | Iterable[str | CompressionFormat] = "",
        output_root: str | None = None,
    ) -> PlanResult:
        """Plan compression jobs.

        Parameters
        ----------
        candidates:
            Assets under consideration, unique by identity.
        explicit_requests:
            Per-asset format overrides. Requests for unknown identities are dropped.
        include_patterns, exclude_patterns:
            Glob patterns, as a sequence or a ``;``-delimited string.
        formats:
            Formats applied to pattern-matched candidates, in output order.
        output_root:
            Base directory for job output paths. Required when any job is planned.

        Returns
        -------
        PlanResult:
            Jobs in plan order, or no jobs and the configuration errors found.
        """
        candidate_list = list(candidates)
        request_list = list(explicit_requests)
        with self._tracer.plan_run(len(candidate_list), len(request_list)) as span:
            result = self._plan(
                span,
                candidate_list,
                request_list,
                PatternSet(include_patterns, exclude_patterns, self._matcher),
                formats,
                output_root,
            )
            span.finish(len(result.jobs), result.success)

        _log.info(
            "Planned %d compression job(s) from %d candidate(s), %d explicit request(s)",
            len(result.jobs),
            len(candidate_list),
            len(request_list),
        )
        return result

    # -- internals -----------------------------------------------------------

    def _plan(
        self,
        span: PlanSpan,
        candidates: list[Asset],
        requests: list[ExplicitRequest],
        patterns: PatternSet,
        formats: str | Iterable[str | CompressionFormat],
        output_root: str | None,
    ) -> PlanResult:
        errors: list[PlanError] = []

        try:
            format_list = parse_formats(formats)
        except ConfigurationError as exc:
            errors.append(exc.to_record())
            format_list = []

        resolved: list[tuple[str, CompressionFormat]] = []
        for request in requests:
            try:
                resolved.append((request.identity, format_from_tag(request.tag)))
            except ConfigurationError as exc:
                errors.append(exc.to_record())

        if errors:
            return self._fail(span, errors)

        by_identity = {asset.identity: asset for asset in candidates}
        produced, artifacts = find_produced(candidates)
        artifact_ids = set(artifacts)

        selected: list[tuple[Asset, CompressionFormat]] = []
        claimed: set[_Key] = set()

        def claim(asset: Asset, fmt: CompressionFormat) -> None:
            key = (asset.identity, fmt)
            if key in claimed:
                return
            if key in produced:
                _log.debug("Skipping %s (%s): already produced", asset.identity, fmt)
                return
            claimed.add(key)
            selected.append((asset, fmt))

        for identity, fmt in resolved:
            asset = by_identity.get(identity)
            if asset is None:
                _log.debug("Dropping explicit %s request for unknown asset %s", fmt, identity)
                continue
            if identity in artifact_ids:
                _log.debug("Ignoring explicit %s request for produced artifact %s", fmt, identity)
                continue
            claim(asset, fmt)

        if patterns and format_list:
            for asset in candidates:
                if asset.identity in artifact_ids:
                    continue
                if not patterns.is_included(asset.match_paths()):
                    continue
                for fmt in format_list:
                    claim(asset, fmt)

        if selected and not (output_root and output_root.strip()):
            err = ConfigurationError(
                f"An output root is required to plan {len(selected)} compression job(s)",
                ErrorCode.MISSING_OUTPUT_ROOT,
            )
            return self._fail(span, [err.to_record()])

        jobs: list[CompressionJob] = []
        writers: dict[str, str] = {}
        for asset, fmt in selected:
            job = CompressionJob.build(asset, fmt, output_root or "")
            owner = writers.get(job.output_path)
            if owner is not None and owner != asset.identity:
                _log.warning(
                    "Skipping %s (%s): output path %s is already written by %s",
                    asset.identity,
                    fmt,
                    job.output_path,
                    owner,
                )
                continue
            writers[job.output_path] = asset.identity
            jobs.append(job)
            span.job(job)

        return PlanResult(jobs=jobs, produced_artifacts=artifacts)

    @staticmethod
    def _fail(span: PlanSpan, errors: list[PlanError]) -> PlanResult:
        for err in errors:
            _log.error("Compression planning failed: %s", err.message)
            span.error(err)
        return PlanResult(errors=errors)


def plan_compression(
    candidates: Iterable[Asset],
    explicit_requests: Iterable[ExplicitRequest] = (),
    include_patterns: str | Iterable[str] | None = None,
    exclude_patterns: str | Iterable[str] | None = None,
    formats: str | Iterable[str | CompressionFormat] = "",
    output_root: str | None = None,
    matcher: PathMatcher | None = None,
) -> PlanResult:
    """Plan with a throwaway :class:`CompressionPlanner`."""
    return CompressionPlanner(matcher=matcher).plan(
        candidates,
        explicit_requests,
        include_patterns=include_patterns,
        exclude_patterns=exclude_patterns,
        formats=formats,
        output_root=output_root,
    )
