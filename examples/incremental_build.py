"""swa-compress incremental build demo.

Demonstrates two consecutive planner runs over the same project:
1. First build plans gzip output for every script and stylesheet
2. The produced assets are fed back as candidates
3. Second build adds brotli and plans only the missing brotli jobs

No files are read or written.

Run: python examples/incremental_build.py
"""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from swa_compress.assets import Asset, ExplicitRequest
from swa_compress.formats import CompressionFormat
from swa_compress.planner import CompressionPlanner, PlanResult


def _check(condition: bool, msg: str) -> None:  # noqa: FBT001
    """Raise RuntimeError if *condition* is False (demo validation)."""
    if not condition:
        raise RuntimeError(msg)


def _print_plan(result: PlanResult) -> None:
    for job in result.jobs:
        print(f"  {job.format.value:<7} {job.source.relative_path:<24} -> {job.output_path}")
    if not result.jobs:
        print("  (nothing to do)")


def run_demo() -> None:
    print("=" * 60)
    print("swa-compress Incremental Build Demo")
    print("=" * 60)

    root = "/project/wwwroot"
    candidates = [
        Asset(identity=f"{root}/{name}", relative_path=name)
        for name in ("app.js", "css/site.css", "lib/vendor.min.js", "img/logo.png")
    ]
    planner = CompressionPlanner()

    # ------------------------------------------------------------------
    # Step 1: first build, gzip only
    # ------------------------------------------------------------------
    print("\n[1/2] First build (formats: gzip)")
    first = planner.plan(
        candidates,
        include_patterns="**/*.js;**/*.css",
        exclude_patterns="**/*.min.js",
        formats="gzip",
        output_root="/project/obj/compressed",
    )
    _print_plan(first)
    _check(first.success, "first build failed")
    _check(len(first.jobs) == 2, "expected gzip jobs for app.js and site.css")

    # ------------------------------------------------------------------
    # Step 2: second build sees the gzip output and adds brotli
    # ------------------------------------------------------------------
    print("\n[2/2] Second build (formats: gzip;brotli, explicit brotli for vendor.min.js)")
    vendor = candidates[2]
    second = planner.plan(
        candidates + first.produced_assets(),
        [ExplicitRequest.for_format(vendor.identity, CompressionFormat.BROTLI)],
        include_patterns="**/*.js;**/*.css",
        exclude_patterns="**/*.min.js",
        formats="gzip;brotli",
        output_root="/project/obj/compressed",
    )
    _print_plan(second)
    print(f"  already produced: {len(second.produced_artifacts)}")
    _check(second.success, "second build failed")
    _check(
        all(job.format is CompressionFormat.BROTLI for job in second.jobs),
        "second build must not re-plan gzip output",
    )
    _check(len(second.jobs) == 3, "expected brotli for vendor, app.js and site.css")

    print(f"\n{'=' * 60}")
    print("Demo complete. Prior output recognized, only new work planned.")
    print(f"{'=' * 60}")


if __name__ == "__main__":
    run_demo()
