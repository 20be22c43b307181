"""Asset, explicit request and compression job models."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from .formats import CompressionFormat

# Metadata stamped on the asset a job produces.
RELATED_ASSET = "RelatedAsset"
ASSET_TRAIT_NAME = "AssetTraitName"
ASSET_TRAIT_VALUE = "AssetTraitValue"
CONTENT_ENCODING_TRAIT = "Content-Encoding"


def normalize_path(path: str) -> str:
    """Use ``/`` as the only separator."""
    return path.replace("\\", "/")


def _produced_relative_path(source: Asset, fmt: CompressionFormat) -> str:
    return f"{source.relative_path}{fmt.suffix}"


class Asset(BaseModel):
    """A static file eligible for compression."""

    identity: str
    relative_path: str
    original_source_path: str | None = None
    metadata: dict[str, str] = Field(default_factory=dict)

    def match_paths(self) -> list[str]:
        """Paths tested against include/exclude patterns."""
        paths = [normalize_path(self.relative_path)]
        if self.original_source_path:
            paths.append(normalize_path(self.original_source_path))
        return paths


class ExplicitRequest(BaseModel):
    """Override pairing one asset identity with one format tag."""

    identity: str
    tag: str

    @classmethod
    def for_format(cls, identity: str, fmt: CompressionFormat) -> ExplicitRequest:
        return cls(identity=identity, tag=fmt.tag)


class CompressionJob(BaseModel):
    """One planned unit of compression work."""

    source: Asset
    format: CompressionFormat
    output_path: str

    @property
    def source_identity(self) -> str:
        return self.source.identity

    @property
    def key(self) -> tuple[str, CompressionFormat]:
        return (self.source.identity, self.format)

    @property
    def produced_relative_path(self) -> str:
        """Relative path of the compressed file: the source path plus the format suffix."""
        return _produced_relative_path(self.source, self.format)

    @classmethod
    def build(cls, source: Asset, fmt: CompressionFormat, output_root: str) -> CompressionJob:
        relative = normalize_path(_produced_relative_path(source, fmt)).lstrip("/")
        output_path = str(Path(output_root) / relative)
        return cls(source=source, format=fmt, output_path=output_path)

    def to_asset(self) -> Asset:
        """Return the asset this job produces, linked back to its source.

        Feeding it into the next planner run marks ``(source, format)`` as
        already produced.
        """
        metadata = dict(self.source.metadata)
        metadata[RELATED_ASSET] = self.source.identity
        metadata[ASSET_TRAIT_NAME] = CONTENT_ENCODING_TRAIT
        metadata[ASSET_TRAIT_VALUE] = self.format.content_encoding
        return Asset(
            identity=self.output_path,
            relative_path=self.produced_relative_path,
            original_source_path=self.source.identity,
            metadata=metadata,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source.identity,
            "format": self.format.value,
            "output_path": self.output_path,
            "relative_path": self.produced_relative_path,
            "metadata": dict(self.source.metadata),
        }
