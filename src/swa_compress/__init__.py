"""swa-compress: build-time compression planning for static web assets."""

from __future__ import annotations

__version__ = "0.1.0"

from .assets import Asset, CompressionJob, ExplicitRequest
from .config import PlannerSettings
from .errors import ConfigurationError, ErrorCode, PlanError
from .formats import (
    CompressionFormat,
    FormatSpec,
    format_from_suffix,
    format_from_tag,
    format_from_token,
    parse_formats,
)
from .globbing import PathMatcher, PatternSet, glob_match, matches_any, split_patterns
from .planner import CompressionPlanner, PlanResult, find_produced, plan_compression
from .telemetry import PlannerTracer, PlanSpan

__all__ = [
    "Asset",
    "CompressionFormat",
    "CompressionJob",
    "CompressionPlanner",
    "ConfigurationError",
    "ErrorCode",
    "ExplicitRequest",
    "FormatSpec",
    "PathMatcher",
    "PatternSet",
    "PlanError",
    "PlanResult",
    "PlannerSettings",
    "PlanSpan",
    "PlannerTracer",
    "find_produced",
    "format_from_suffix",
    "format_from_tag",
    "format_from_token",
    "glob_match",
    "matches_any",
    "parse_formats",
    "plan_compression",
    "split_patterns",
]
