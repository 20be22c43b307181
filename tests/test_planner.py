"""Tests for the compression planner."""

from __future__ import annotations

import uuid
from pathlib import Path

import pytest

from swa_compress.assets import Asset, ExplicitRequest
from swa_compress.errors import ErrorCode
from swa_compress.formats import CompressionFormat
from swa_compress.planner import CompressionPlanner, find_produced, plan_compression

GZIP = "BuildCompressionGzip"
BROTLI = "BuildCompressionBrotli"


@pytest.fixture
def output_root(tmp_path: Path) -> str:
    return str(tmp_path / "compressed")


@pytest.fixture
def asset(tmp_path: Path) -> Asset:
    identity = tmp_path / f"{uuid.uuid4().hex}.tmp"
    original = tmp_path / f"{uuid.uuid4().hex}.tmp"
    return Asset(
        identity=str(identity),
        original_source_path=str(original),
        relative_path=identity.name,
    )


def _a(name: str, **metadata: str) -> Asset:
    return Asset(identity=f"/src/wwwroot/{name}", relative_path=name, metadata=metadata)


def _req(target: Asset, tag: str) -> ExplicitRequest:
    return ExplicitRequest(identity=target.identity, tag=tag)


# ---------------------------------------------------------------------------
# Core scenarios
# ---------------------------------------------------------------------------


def test_resolves_explicitly_provided_assets(asset: Asset, output_root: str) -> None:
    result = plan_compression(
        [asset],
        [_req(asset, GZIP), _req(asset, BROTLI)],
        formats="gzip;brotli",
        output_root=output_root,
    )
    assert result.success is True
    assert len(result.jobs) == 2
    assert result.jobs[0].output_path.endswith(".gz")
    assert result.jobs[1].output_path.endswith(".br")


def test_resolves_assets_matching_include_pattern(asset: Asset, output_root: str) -> None:
    result = plan_compression(
        [asset],
        include_patterns="**\\*.tmp",
        formats="gzip;brotli",
        output_root=output_root,
    )
    assert result.success is True
    assert len(result.jobs) == 2
    assert result.jobs[0].output_path.endswith(".gz")
    assert result.jobs[1].output_path.endswith(".br")


def test_excludes_assets_matching_exclude_pattern(asset: Asset, output_root: str) -> None:
    result = plan_compression(
        [asset],
        include_patterns="**\\*",
        exclude_patterns="**\\*.tmp",
        formats="gzip;brotli",
        output_root=output_root,
    )
    assert result.success is True
    assert result.jobs == []


def test_deduplicates_assets_resolved_explicitly_and_from_pattern(
    asset: Asset, output_root: str
) -> None:
    result = plan_compression(
        [asset],
        [_req(asset, GZIP), _req(asset, BROTLI)],
        include_patterns="**\\*.tmp",
        formats="gzip;brotli",
        output_root=output_root,
    )
    assert result.success is True
    assert len(result.jobs) == 2
    assert result.jobs[0].output_path.endswith(".gz")
    assert result.jobs[1].output_path.endswith(".br")


def test_ignores_assets_compressed_in_previous_run(asset: Asset, output_root: str) -> None:
    first = plan_compression(
        [asset],
        include_patterns="**\\*.tmp",
        formats="gzip",
        output_root=output_root,
    )
    assert first.success is True
    assert len(first.jobs) == 1
    assert first.jobs[0].output_path.endswith(".gz")

    second = plan_compression(
        [asset, first.jobs[0].to_asset()],
        [_req(asset, BROTLI)],
        include_patterns="**\\*.tmp",
        formats="gzip;brotli",
        output_root=output_root,
    )
    assert second.success is True
    assert len(second.jobs) == 1
    assert second.jobs[0].output_path.endswith(".br")
    assert second.produced_artifacts == [first.jobs[0].output_path]


# ---------------------------------------------------------------------------
# Ordering and dedup
# ---------------------------------------------------------------------------


def test_explicit_jobs_come_before_pattern_jobs() -> None:
    app, site = _a("app.js"), _a("site.css")
    result = plan_compression(
        [app, site],
        [_req(site, BROTLI)],
        include_patterns="**/*.js",
        formats="gzip;brotli",
        output_root="/out",
    )
    keys = [(j.source_identity, j.format) for j in result.jobs]
    assert keys == [
        (site.identity, CompressionFormat.BROTLI),
        (app.identity, CompressionFormat.GZIP),
        (app.identity, CompressionFormat.BROTLI),
    ]


def test_pattern_jobs_follow_candidate_then_format_order() -> None:
    a, b = _a("b.js"), _a("a.js")
    result = plan_compression(
        [a, b], include_patterns="**/*.js", formats="brotli;gzip", output_root="/out"
    )
    keys = [(j.source_identity, j.format) for j in result.jobs]
    assert keys == [
        (a.identity, CompressionFormat.BROTLI),
        (a.identity, CompressionFormat.GZIP),
        (b.identity, CompressionFormat.BROTLI),
        (b.identity, CompressionFormat.GZIP),
    ]


def test_explicit_request_keeps_its_position_when_pattern_also_matches() -> None:
    app = _a("app.js")
    result = plan_compression(
        [app],
        [_req(app, BROTLI)],
        include_patterns="**/*.js",
        formats="gzip;brotli",
        output_root="/out",
    )
    assert [j.format for j in result.jobs] == [CompressionFormat.BROTLI, CompressionFormat.GZIP]


def test_repeated_explicit_requests_collapse() -> None:
    app = _a("app.js")
    result = plan_compression(
        [app], [_req(app, GZIP), _req(app, "buildcompressiongzip")], output_root="/out"
    )
    assert len(result.jobs) == 1


def test_plan_is_deterministic() -> None:
    assets = [_a(f"file{i}.js") for i in range(5)]
    kwargs = {
        "explicit_requests": [_req(assets[3], BROTLI)],
        "include_patterns": "**/*.js",
        "exclude_patterns": "**/file1.js",
        "formats": "gzip;brotli",
        "output_root": "/out",
    }
    first = plan_compression(assets, **kwargs)
    second = plan_compression(assets, **kwargs)
    assert first.to_dict() == second.to_dict()
    assert len({(j.source_identity, j.format) for j in first.jobs}) == len(first.jobs)


# ---------------------------------------------------------------------------
# Selection rules
# ---------------------------------------------------------------------------


def test_explicit_request_wins_over_exclude_pattern() -> None:
    app = _a("app.js")
    result = plan_compression(
        [app],
        [_req(app, GZIP)],
        include_patterns="**/*",
        exclude_patterns="**/*.js",
        formats="gzip;brotli",
        output_root="/out",
    )
    assert [j.format for j in result.jobs] == [CompressionFormat.GZIP]


def test_explicit_format_outside_format_list_is_honored() -> None:
    app = _a("app.js")
    result = plan_compression([app], [_req(app, BROTLI)], formats="gzip", output_root="/out")
    assert [j.format for j in result.jobs] == [CompressionFormat.BROTLI]


def test_empty_include_patterns_match_nothing() -> None:
    result = plan_compression([_a("app.js")], formats="gzip;brotli", output_root="/out")
    assert result.success is True
    assert result.jobs == []


def test_empty_format_list_yields_only_explicit_jobs() -> None:
    app, site = _a("app.js"), _a("site.css")
    result = plan_compression(
        [app, site],
        [_req(site, GZIP)],
        include_patterns="**/*",
        formats="",
        output_root="/out",
    )
    assert [(j.source_identity, j.format) for j in result.jobs] == [
        (site.identity, CompressionFormat.GZIP)
    ]


def test_unknown_explicit_identity_is_dropped_silently() -> None:
    app = _a("app.js")
    ghost = ExplicitRequest(identity="/src/wwwroot/missing.js", tag=GZIP)
    result = plan_compression([app], [ghost], output_root="/out")
    assert result.success is True
    assert result.errors == []
    assert result.jobs == []


def test_original_source_path_is_matched() -> None:
    asset = Asset(
        identity="/obj/fingerprinted/app.abc123.js",
        relative_path="app.abc123.js",
        original_source_path="/src/wwwroot/scripts/app.js",
    )
    result = plan_compression(
        [asset], include_patterns="**/scripts/*.js", formats="gzip", output_root="/out"
    )
    assert len(result.jobs) == 1


def test_exclude_on_original_source_path_wins() -> None:
    asset = Asset(
        identity="/obj/app.js",
        relative_path="app.js",
        original_source_path="/src/vendor/app.js",
    )
    result = plan_compression(
        [asset],
        include_patterns="**/*.js",
        exclude_patterns="**/vendor/**",
        formats="gzip",
        output_root="/out",
    )
    assert result.jobs == []



def test_single_star_pattern_does_not_reach_subdirectories() -> None:
    top = Asset(identity="/src/wwwroot/app.js", relative_path="wwwroot/app.js")
    nested = Asset(identity="/src/wwwroot/lib/x.js", relative_path="wwwroot/lib/x.js")
    result = plan_compression(
        [top, nested], include_patterns="wwwroot/*.js", formats="gzip", output_root="/out"
    )
    assert [job.source_identity for job in result.jobs] == [top.identity]


def test_top_level_exclude_does_not_drop_nested_asset() -> None:
    nested = Asset(identity="/src/wwwroot/css/site.css", relative_path="css/site.css")
    result = plan_compression(
        [nested],
        include_patterns="**/*",
        exclude_patterns="*.css",
        formats="gzip",
        output_root="/out",
    )
    assert len(result.jobs) == 1

def test_custom_matcher_is_used() -> None:
    seen: list[tuple[str, tuple[str, ...]]] = []

    def matcher(path: str, patterns: list[str]) -> bool:
        seen.append((path, tuple(patterns)))
        return "keep" in patterns

    planner = CompressionPlanner(matcher=matcher)
    result = planner.plan([_a("app.js")], include_patterns="keep", formats="gzip", output_root="/o")
    assert len(result.jobs) == 1
    assert seen[0] == ("app.js", ("keep",))


# ---------------------------------------------------------------------------
# Produced artifacts
# ---------------------------------------------------------------------------


def test_find_produced_requires_origin_among_candidates() -> None:
    app = _a("app.js")
    orphan = Asset(
        identity="/out/other.js.gz",
        relative_path="other.js.gz",
        original_source_path="/src/wwwroot/other.js",
    )
    produced, artifacts = find_produced([app, orphan])
    assert produced == set()
    assert artifacts == []


def test_find_produced_infers_format_from_suffix() -> None:
    app = _a("app.js")
    job_gz = plan_compression([app], [_req(app, GZIP)], output_root="/out").jobs[0]
    job_br = plan_compression([app], [_req(app, BROTLI)], output_root="/out").jobs[0]
    produced, artifacts = find_produced([app, job_gz.to_asset(), job_br.to_asset()])
    assert produced == {
        (app.identity, CompressionFormat.GZIP),
        (app.identity, CompressionFormat.BROTLI),
    }
    assert artifacts == [job_gz.output_path, job_br.output_path]


def test_asset_without_back_reference_is_not_an_artifact() -> None:
    pre_zipped = _a("data.json.gz")
    result = plan_compression(
        [pre_zipped], include_patterns="**/*", formats="brotli", output_root="/out"
    )
    assert result.produced_artifacts == []
    assert len(result.jobs) == 1


def test_produced_artifacts_are_never_compressed_again() -> None:
    app = _a("app.js")
    gz = plan_compression([app], [_req(app, GZIP)], output_root="/out").jobs[0].to_asset()
    result = plan_compression(
        [app, gz],
        [ExplicitRequest(identity=gz.identity, tag=BROTLI)],
        include_patterns="**/*",
        formats="gzip;brotli",
        output_root="/out",
    )
    assert [(j.source_identity, j.format) for j in result.jobs] == [
        (app.identity, CompressionFormat.BROTLI)
    ]


def test_rerun_with_all_outputs_plans_nothing() -> None:
    assets = [_a("app.js"), _a("site.css")]
    kwargs = {"include_patterns": "**/*", "formats": "gzip;brotli", "output_root": "/out"}
    first = plan_compression(assets, **kwargs)
    assert len(first.jobs) == 4
    second = plan_compression(assets + first.produced_assets(), **kwargs)
    assert second.success is True
    assert second.jobs == []


# ---------------------------------------------------------------------------
# Output paths
# ---------------------------------------------------------------------------


def test_output_path_is_root_plus_relative_path_plus_suffix() -> None:
    asset = Asset(identity="/src/wwwroot/css/site.css", relative_path="css\\site.css")
    job = plan_compression([asset], [_req(asset, BROTLI)], output_root="/out").jobs[0]
    assert Path(job.output_path) == Path("/out/css/site.css.br")


def test_colliding_output_paths_keep_first_writer(caplog: pytest.LogCaptureFixture) -> None:
    first = Asset(identity="/a/app.js", relative_path="app.js")
    second = Asset(identity="/b/app.js", relative_path="app.js")
    result = plan_compression(
        [first, second], include_patterns="**/*.js", formats="gzip", output_root="/out"
    )
    assert [j.source_identity for j in result.jobs] == [first.identity]
    assert "already written by" in caplog.text
    assert len({j.output_path for j in result.jobs}) == len(result.jobs)


def test_job_metadata_is_carried_through() -> None:
    app = _a("app.js", SourceType="Discovered")
    job = plan_compression([app], [_req(app, GZIP)], output_root="/out").jobs[0]
    produced = job.to_asset()
    assert job.source.metadata == {"SourceType": "Discovered"}
    assert produced.metadata["SourceType"] == "Discovered"
    assert produced.metadata["AssetTraitValue"] == "gzip"


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------


def test_unknown_explicit_tag_fails_the_plan() -> None:
    app = _a("app.js")
    result = plan_compression(
        [app],
        [_req(app, GZIP), _req(app, "BuildCompressionZstd")],
        output_root="/out",
    )
    assert result.success is False
    assert result.jobs == []
    assert [e.code for e in result.errors] == [ErrorCode.UNKNOWN_TAG]
    assert "BuildCompressionZstd" in result.errors[0].message


def test_unknown_format_token_fails_the_plan() -> None:
    result = plan_compression(
        [_a("app.js")], include_patterns="**/*", formats="gzip;lzma", output_root="/out"
    )
    assert result.success is False
    assert result.jobs == []
    assert result.errors[0].code == ErrorCode.UNKNOWN_FORMAT


def test_all_configuration_errors_are_reported() -> None:
    app = _a("app.js")
    result = plan_compression([app], [_req(app, "Nope")], formats="zip", output_root="/out")
    assert {e.code for e in result.errors} == {ErrorCode.UNKNOWN_FORMAT, ErrorCode.UNKNOWN_TAG}


def test_missing_output_root_fails_when_jobs_are_planned() -> None:
    app = _a("app.js")
    result = plan_compression([app], [_req(app, GZIP)], output_root=None)
    assert result.success is False
    assert result.jobs == []
    assert result.errors[0].code == ErrorCode.MISSING_OUTPUT_ROOT


def test_missing_output_root_is_fine_when_nothing_is_planned() -> None:
    result = plan_compression([_a("app.js")], formats="gzip", output_root="")
    assert result.success is True
    assert result.jobs == []


def test_to_dict_shape() -> None:
    app = _a("app.js")
    data = plan_compression([app], [_req(app, GZIP)], output_root="/out").to_dict()
    assert data["success"] is True
    assert data["errors"] == []
    assert data["jobs"][0]["source"] == app.identity
    assert data["jobs"][0]["format"] == "gzip"
    assert data["jobs"][0]["relative_path"] == "app.js.gz"
