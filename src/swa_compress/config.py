"""Planner settings resolved from the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

_DEFAULT_FORMATS = "gzip"
_DEFAULT_LOG_LEVEL = "WARNING"
_DEFAULT_TRACE_EXPORTER = "none"

_VALID_TRACE_EXPORTERS = frozenset({"none", "stdout", "otlp"})


@dataclass
class PlannerSettings:
    """Defaults for a planner run.

    Values stay raw strings; token and tag validation happens in the planner
    so problems surface as structured plan errors.

    Configuration via environment variables:
        - ``SWA_COMPRESS_FORMATS``: ``;``-delimited format tokens (default ``gzip``)
        - ``SWA_COMPRESS_INCLUDE``: ``;``-delimited include patterns
        - ``SWA_COMPRESS_EXCLUDE``: ``;``-delimited exclude patterns
        - ``SWA_COMPRESS_OUTPUT_ROOT``: base directory for compressed output
        - ``SWA_COMPRESS_LOG_LEVEL``: logging level name (default ``WARNING``)
        - ``SWA_COMPRESS_TRACE_EXPORTER``: ``none`` | ``stdout`` | ``otlp``
    """

    formats: str = _DEFAULT_FORMATS
    include_patterns: str = ""
    exclude_patterns: str = ""
    output_root: str | None = None
    log_level: str = _DEFAULT_LOG_LEVEL
    trace_exporter: str = _DEFAULT_TRACE_EXPORTER

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PlannerSettings:
        """Build settings from ``SWA_COMPRESS_*`` variables.

        Raises:
            ValueError: If ``SWA_COMPRESS_TRACE_EXPORTER`` is set to an unknown value.
        """
        env = os.environ if environ is None else environ

        exporter = env.get("SWA_COMPRESS_TRACE_EXPORTER", "").strip().lower()
        if exporter and exporter not in _VALID_TRACE_EXPORTERS:
            msg = (
                f"Unknown trace exporter '{exporter}'. "
                f"Valid values for SWA_COMPRESS_TRACE_EXPORTER: "
                f"{', '.join(sorted(_VALID_TRACE_EXPORTERS))}"
            )
            raise ValueError(msg)

        output_root = env.get("SWA_COMPRESS_OUTPUT_ROOT", "").strip()
        return cls(
            formats=env.get("SWA_COMPRESS_FORMATS", _DEFAULT_FORMATS),
            include_patterns=env.get("SWA_COMPRESS_INCLUDE", ""),
            exclude_patterns=env.get("SWA_COMPRESS_EXCLUDE", ""),
            output_root=output_root or None,
            log_level=env.get("SWA_COMPRESS_LOG_LEVEL", _DEFAULT_LOG_LEVEL).strip().upper()
            or _DEFAULT_LOG_LEVEL,
            trace_exporter=exporter or _DEFAULT_TRACE_EXPORTER,
        )
