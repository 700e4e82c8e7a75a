from __future__ import annotations

import io

from boardflow.utils.debug_logger import DebugLogger
from boardflow.utils.exception_reporter import ExceptionReporter
from boardflow.utils.progress import ProgressTracker, StepTracker


def test_empty_reporter_renders_nothing() -> None:
    reporter = ExceptionReporter()

    assert not reporter.has_entries()
    assert reporter.render() == ""


def test_report_groups_entries() -> None:
    reporter = ExceptionReporter()
    reporter.add_context_error("query q-mine", ["project"])
    reporter.add_step_failure("Finish work", 42, "git push", "rejected\nhint: fetch first")
    reporter.add_decode_error(7, "vstfs:///x", "no GB branch marker")
    reporter.add_missing_item("q-mine", 9)

    report = reporter.render()

    assert "MISSING CONFIGURATION (1)" in report
    assert "  - query q-mine: project" in report
    assert "  - Finish work #42 at git push" in report
    assert "      hint: fetch first" in report
    assert "#7: no GB branch marker" in report
    assert "#9 (query q-mine)" in report


def test_step_tracker_prints_outcomes() -> None:
    out = io.StringIO()
    tracker = StepTracker(out=out)

    tracker.start_sequence("Start work", 42)
    tracker.end_step("git fetch", True)
    tracker.end_step("git checkout feature/x", False, "error: pathspec")

    text = out.getvalue()
    assert "Start work for work item 42" in text
    assert "✓ git fetch" in text
    assert "✗ git checkout feature/x" in text
    assert "      error: pathspec" in text


def test_disabled_progress_tracker_is_a_no_op() -> None:
    progress = ProgressTracker(enabled=False)

    assert progress.create_bar(3, "Hydrating work items") is None
    progress.update(1)
    progress.set_postfix(avatars=1)
    progress.close()


def test_debug_logger_appends_to_file(tmp_path) -> None:
    log_path = tmp_path / "logs" / "boardflow.log"

    first = DebugLogger(str(log_path))
    first.section("boardflow queries")
    first.log("first run")
    first.close()
    second = DebugLogger(str(log_path))
    second.section("boardflow tree")
    second.log("second run")
    second.close()

    text = log_path.read_text(encoding="utf-8")
    assert "first run" in text and "second run" in text
    assert text.index("boardflow queries") < text.index("boardflow tree")


def test_debug_logger_masks_secrets(tmp_path, capsys) -> None:
    log_path = tmp_path / "boardflow.log"
    logger = DebugLogger(str(log_path), console_debug=True, secrets=["s3cr3t-pat", None])

    logger.log("Authorization failed for token s3cr3t-pat")
    logger.close()

    assert "s3cr3t-pat" not in log_path.read_text(encoding="utf-8")
    assert capsys.readouterr().out.strip() == "Authorization failed for token ***"
