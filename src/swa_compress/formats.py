"""Compression formats and the static token/tag/suffix table."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from .errors import ConfigurationError, ErrorCode


class CompressionFormat(StrEnum):
    """Closed set of compression schemes the planner can schedule."""

    GZIP = "gzip"
    BROTLI = "brotli"

    @property
    def suffix(self) -> str:
        return _TABLE[self].suffix

    @property
    def tag(self) -> str:
        return _TABLE[self].tag

    @property
    def content_encoding(self) -> str:
        return _TABLE[self].content_encoding


@dataclass(frozen=True)
class FormatSpec:
    """Static description of one compression format."""

    token: str
    tag: str
    suffix: str
    content_encoding: str


_TABLE: dict[CompressionFormat, FormatSpec] = {
    CompressionFormat.GZIP: FormatSpec(
        token="gzip",
        tag="BuildCompressionGzip",
        suffix=".gz",
        content_encoding="gzip",
    ),
    CompressionFormat.BROTLI: FormatSpec(
        token="brotli",
        tag="BuildCompressionBrotli",
        suffix=".br",
        content_encoding="br",
    ),
}

_BY_TOKEN: dict[str, CompressionFormat] = {s.token: f for f, s in _TABLE.items()}
_BY_TAG: dict[str, CompressionFormat] = {s.tag.lower(): f for f, s in _TABLE.items()}

FORMAT_DELIMITER = ";"


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def format_from_token(token: str) -> CompressionFormat:
    """Resolve a format-list token such as ``"gzip"``.

    Raises :class:`ConfigurationError` for unknown tokens.
    """
    fmt = _BY_TOKEN.get(token.strip().lower())
    if fmt is None:
        msg = (
            f"Unknown compression format '{token.strip()}'. "
            f"Valid formats: {', '.join(sorted(_BY_TOKEN))}"
        )
        raise ConfigurationError(msg, ErrorCode.UNKNOWN_FORMAT)
    return fmt


def format_from_tag(tag: str) -> CompressionFormat:
    """Resolve an explicit-request tag such as ``"BuildCompressionBrotli"``.

    Raises :class:`ConfigurationError` for unknown tags.
    """
    fmt = _BY_TAG.get(tag.strip().lower())
    if fmt is None:
        valid = sorted(s.tag for s in _TABLE.values())
        msg = f"Unknown compression tag '{tag.strip()}'. Valid tags: {', '.join(valid)}"
        raise ConfigurationError(msg, ErrorCode.UNKNOWN_TAG)
    return fmt


def format_from_suffix(path: str) -> CompressionFormat | None:
    """Return the format whose suffix *path* ends with, or ``None``."""
    lowered = path.lower()
    for fmt, spec in _TABLE.items():
        if lowered.endswith(spec.suffix):
            return fmt
    return None


def parse_formats(value: str | Iterable[str | CompressionFormat]) -> list[CompressionFormat]:
    """Parse a ``;``-delimited token string (or a sequence) into ordered formats.

    Empty entries are ignored and repeated formats keep their first position.
    Every unknown token is collected; if any are found a single
    :class:`ConfigurationError` naming all of them is raised.
    """
    if isinstance(value, str):
        tokens: list[str | CompressionFormat] = list(value.split(FORMAT_DELIMITER))
    else:
        tokens = list(value)

    formats: list[CompressionFormat] = []
    unknown: list[str] = []
    for token in tokens:
        if isinstance(token, CompressionFormat):
            fmt = token
        else:
            if not token.strip():
                continue
            try:
                fmt = format_from_token(token)
            except ConfigurationError:
                unknown.append(token.strip())
                continue
        if fmt not in formats:
            formats.append(fmt)

    if unknown:
        msg = (
            f"Unknown compression format(s): {', '.join(unknown)}. "
            f"Valid formats: {', '.join(sorted(_BY_TOKEN))}"
        )
        raise ConfigurationError(msg, ErrorCode.UNKNOWN_FORMAT)
    return formats
