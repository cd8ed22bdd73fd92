#!/usr/bin/env python3
"""Validate local Harmony environment readiness."""

from __future__ import annotations

import importlib
import sys
from datetime import datetime, timedelta
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from harmony.domain.thresholds import DEFAULT_THRESHOLDS, validate_thresholds
from harmony.services.harmony_service import HarmonyEngine
from harmony.utils.time_utils import current_week_range

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def _synthetic_week(monday: datetime) -> list[dict[str, str]]:
    """Five one-hour appointments per weekday with 30 minute breaks."""
    events: list[dict[str, str]] = []
    for day_offset in range(5):
        cursor = monday + timedelta(days=day_offset, hours=9)
        for slot in range(5):
            events.append(
                {
                    "id": f"validation-{day_offset}-{slot}",
                    "start": cursor.isoformat(),
                    "end": (cursor + timedelta(hours=1)).isoformat(),
                    "type": "appointment",
                    "status": "confirmed",
                }
            )
            cursor += timedelta(minutes=90)
    return events


def main() -> int:
    results: list[str] = []
    all_passed = True

    # CHECK 1 — Python version >= 3.11
    if sys.version_info >= (3, 11):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.11",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2 — Required packages importable with versions
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("numpy", "numpy"),
        ("pandas", "pandas"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    from importlib.metadata import version
    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            _ = version(dist_name)
        except Exception as exc:  # pragma: no cover - runtime guard
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 3 — Default threshold table is consistent
    try:
        validate_thresholds(DEFAULT_THRESHOLDS)
        ok, line = _print_result("Threshold table", True)
    except ValueError as exc:
        ok, line = _print_result("Threshold table", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 4 — Weekly score on a synthetic balanced week
    try:
        week_start, week_end = current_week_range()
        engine = HarmonyEngine()
        result = engine.compute_weekly_score(
            _synthetic_week(week_start),
            week_range=(week_start, week_end),
        )
        if result.is_fallback:
            raise RuntimeError(f"fallback result returned: {result.fallback_reason}")
        if not 0 <= result.score <= 100:
            raise RuntimeError(f"score out of bounds: {result.score}")
        ok, line = _print_result(
            "Weekly score",
            True,
            f": score={result.score} level={result.level}",
        )
    except Exception as exc:
        ok, line = _print_result("Weekly score", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 5 — Overload prediction over the default horizon
    try:
        forecast = HarmonyEngine().predict_overload_risk([])
        if forecast.overall_risk != "low":
            raise RuntimeError(f"expected low risk for empty schedule, got {forecast.overall_risk}")
        ok, line = _print_result(
            "Overload prediction",
            True,
            f": {len(forecast.predictions)} days",
        )
    except Exception as exc:
        ok, line = _print_result("Overload prediction", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    print(SEPARATOR_LINE)
    print(" Harmony Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
