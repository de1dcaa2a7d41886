from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from sqlgate.rag.sql_safety import QueryGuard
from sqlgate.utils.logging import setup_logging

logger = logging.getLogger(__name__)

CASES_PATH = Path(__file__).resolve().parent / "guard_cases.yaml"


@dataclass
class CheckResult:
    id: str
    ok: bool
    details: str


def load_cases(path: Path = CASES_PATH) -> List[Dict[str, Any]]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    return data["cases"]


def run_one_case(case: Dict[str, Any], guard: QueryGuard) -> CheckResult:
    """Compare the guard's verdict for one corpus entry with its expectation."""
    cid = case["id"]
    verdict = guard.validate(case.get("sql"))
    expect_allowed = bool(case["allowed"])

    if verdict.allowed != expect_allowed:
        logger.warning("Verdict mismatch: id=%s expected=%s got=%s", cid, expect_allowed, verdict.allowed)
        return CheckResult(cid, False, f"expected allowed={expect_allowed}, got {verdict.allowed} ({verdict.reason})")

    fragment: Optional[str] = case.get("reason_contains")
    if fragment and fragment not in (verdict.reason or ""):
        logger.warning("Reason mismatch: id=%s expected=%r got=%r", cid, fragment, verdict.reason)
        return CheckResult(cid, False, f"reason {verdict.reason!r} lacks {fragment!r}")

    return CheckResult(cid, True, verdict.reason or "allowed")


def run_cases(cases: List[Dict[str, Any]]) -> List[CheckResult]:
    guard = QueryGuard()
    return [run_one_case(c, guard) for c in cases]


def render_report(results: List[CheckResult]) -> str:
    passed = sum(1 for r in results if r.ok)
    lines = [
        "# Query Guard Report",
        "",
        f"- Passed: **{passed}/{len(results)}**",
        "",
        "| Case ID | Status | Details |",
        "|---|---|---|",
    ]
    for r in results:
        status = "✅ PASS" if r.ok else "❌ FAIL"
        details = r.details.replace("\n", "<br>").replace("|", "\\|")
        lines.append(f"| `{r.id}` | {status} | {details} |")
    return "\n".join(lines)


def main() -> None:
    setup_logging()
    results = run_cases(load_cases())
    out_path = Path.cwd() / "Guard_Report.md"
    out_path.write_text(render_report(results), encoding="utf-8")
    passed = sum(1 for r in results if r.ok)
    logger.info("Guard checks complete: passed=%s total=%s output=%s", passed, len(results), out_path)
    print(f"Wrote: {out_path}")
    if passed != len(results):
        raise SystemExit(1)


if __name__ == "__main__":
    main()
