from sqlgate.eval.check_guard import load_cases, render_report, run_cases, run_one_case
from sqlgate.rag.sql_safety import QueryGuard


def test_guard_corpus_passes():
    results = run_cases(load_cases())
    failures = [r for r in results if not r.ok]
    assert results
    assert not failures, failures


def test_mismatch_is_reported():
    res = run_one_case({"id": "wrong", "sql": "SELECT 1", "allowed": False}, QueryGuard())
    assert not res.ok
    assert "expected allowed=False" in res.details

    res = run_one_case(
        {"id": "reason", "sql": "DROP TABLE x", "allowed": False, "reason_contains": "multiple"},
        QueryGuard(),
    )
    assert not res.ok


def test_report_table():
    report = render_report(run_cases([{"id": "a", "sql": "SELECT 1", "allowed": True}]))
    assert "Passed: **1/1**" in report
    assert "| `a` | ✅ PASS | allowed |" in report
