from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from boardflow.operations.workflow_engine import (
    SequenceState,
    Step,
    StepOutcome,
    WorkflowEngine,
    propose_branch_name,
    run_sequence,
)
from boardflow.utils.branch_link import decode_branch_link
from boardflow.utils.errors import TransportError, VersionControlStepError


def recording_git(calls, fail_on=None, stderr="error: pathspec did not match"):
    """A git client that records calls and fails on one method name."""
    git = MagicMock()

    def recorder(name):
        def call(*args):
            calls.append((name, *args))
            if name == fail_on:
                raise VersionControlStepError(["git", name, *args], stderr)
        return call

    for name in ("fetch", "checkout", "pull", "push", "delete_branch", "rebase"):
        setattr(git, name, MagicMock(side_effect=recorder(name)))
    return git


@pytest.fixture
def calls():
    return []


@pytest.fixture
def opened():
    return []


def make_engine(config, api, git, opened, reporter=None, on_refresh=None):
    return WorkflowEngine(config, api, git, on_refresh=on_refresh, open_url=opened.append,
                          exception_reporter=reporter)


def test_start_work_runs_all_steps_then_activates_item(config, api, calls, opened) -> None:
    refresh = MagicMock()
    engine = make_engine(config, api, recording_git(calls), opened, on_refresh=refresh)

    result = engine.start_work(42, "feature/42-fix-login")

    assert result.ok
    assert result.state == SequenceState.ITEM_ACTIVATED
    assert calls == [
        ("fetch",),
        ("checkout", "feature/42-fix-login"),
        ("pull",),
        ("rebase", "origin/master"),
    ]
    api.update_work_item.assert_called_once_with(42, [
        {"op": "replace", "path": "/fields/System.AssignedTo", "value": "me@contoso.com"},
        {"op": "replace", "path": "/fields/System.State", "value": "Active"},
    ])
    refresh.assert_called_once_with()


def test_start_work_halts_after_failed_checkout(config, api, calls, opened, reporter) -> None:
    refresh = MagicMock()
    git = recording_git(calls, fail_on="checkout")
    engine = make_engine(config, api, git, opened, reporter=reporter, on_refresh=refresh)

    result = engine.start_work(42, "feature/42-fix-login")

    assert not result.ok
    assert result.state == SequenceState.ERROR
    assert result.completed == [SequenceState.FETCHED]
    assert result.failed_step.state == SequenceState.CHECKED_OUT
    assert result.message == "error: pathspec did not match"
    assert calls == [("fetch",), ("checkout", "feature/42-fix-login")]
    git.pull.assert_not_called()
    git.rebase.assert_not_called()
    api.update_work_item.assert_not_called()
    refresh.assert_not_called()
    assert reporter.step_failures[0]["step"] == "git checkout feature/42-fix-login"


def test_start_work_failed_patch_reports_without_refresh(config, api, calls, opened) -> None:
    refresh = MagicMock()
    api.update_work_item.side_effect = TransportError("PATCH", "workitems/42", "denied", status_code=403)
    engine = make_engine(config, api, recording_git(calls), opened, on_refresh=refresh)

    result = engine.start_work(42, "feature/42-fix-login")

    assert result.failed_step.state == SequenceState.ITEM_ACTIVATED
    assert "denied" in result.message
    assert len(calls) == 4
    refresh.assert_not_called()


def test_finish_work_end_to_end(config, api, calls, opened) -> None:
    refresh = MagicMock()
    engine = make_engine(config, api, recording_git(calls), opened, on_refresh=refresh)

    result = engine.finish_work(42, "feature/42-fix-login")

    assert result.ok
    assert result.state == SequenceState.ITEM_RESOLVED
    assert result.completed == [
        SequenceState.FETCHED,
        SequenceState.CHECKED_OUT,
        SequenceState.PUSHED,
        SequenceState.SWITCHED_TO_INTEGRATION,
        SequenceState.BRANCH_DELETED,
        SequenceState.PR_OPENED,
        SequenceState.ITEM_RESOLVED,
    ]
    assert calls == [
        ("fetch",),
        ("checkout", "feature/42-fix-login"),
        ("push",),
        ("checkout", "master"),
        ("delete_branch", "feature/42-fix-login"),
    ]
    assert opened == [
        "https://dev.azure.com/contoso/Fabrikam/_git/fabrikam-web/pullrequestcreate"
        "?sourceRef=feature%2F42-fix-login"
    ]
    api.update_work_item.assert_called_once_with(42, [
        {"op": "replace", "path": "/fields/System.State", "value": "Resolved"},
    ])
    refresh.assert_called_once_with()


def test_finish_work_push_failure_leaves_checkout_as_is(config, api, calls, opened) -> None:
    engine = make_engine(config, api, recording_git(calls, fail_on="push", stderr="rejected"), opened)

    result = engine.finish_work(42, "feature/42-fix-login")

    assert result.failed_step.state == SequenceState.PUSHED
    assert calls[-1] == ("push",)
    assert opened == []
    api.update_work_item.assert_not_called()


def test_sequences_require_a_branch(config, api, calls, opened) -> None:
    engine = make_engine(config, api, recording_git(calls), opened)

    with pytest.raises(ValueError):
        engine.start_work(1, None)
    with pytest.raises(ValueError):
        engine.finish_work(1, "")
    assert calls == []


def test_checkout_only_checks_out(config, api, calls, opened) -> None:
    engine = make_engine(config, api, recording_git(calls), opened)

    result = engine.checkout(3, "bug/3-crash")

    assert result.ok
    assert calls == [("checkout", "bug/3-crash")]
    api.update_work_item.assert_not_called()


def test_propose_branch_name() -> None:
    assert propose_branch_name("Fix Login Bug!!", "users/me/", 7) == "users/me/7-fix-login-bug"
    assert propose_branch_name("  Émoji 🎉 support ", "", 12) == "12-moji--support"


def test_create_branch_creates_ref_and_links_it(config, api, calls, opened) -> None:
    refresh = MagicMock()
    engine = make_engine(config, api, recording_git(calls), opened, on_refresh=refresh)
    offered = []

    def confirm(name):
        offered.append(name)
        return name

    result = engine.create_branch(7, "Fix Login Bug!!", confirm_name=confirm)

    assert result.ok
    assert result.state == SequenceState.BRANCH_LINKED
    assert result.branch_name == "users/me/7-fix-login-bug"
    assert offered == ["users/me/7-fix-login-bug"]
    api.get_branch.assert_called_once_with("fabrikam-web", "master")
    api.create_ref.assert_called_once_with("fabrikam-web", "users/me/7-fix-login-bug", "c0ffee")

    [(item_id, ops)] = [c.args for c in api.update_work_item.call_args_list]
    assert item_id == 7
    assert ops[0]["op"] == "add"
    assert ops[0]["path"] == "/relations/-"
    assert ops[0]["value"]["attributes"] == {"name": "Branch"}
    _, repo, branch = decode_branch_link(ops[0]["value"]["url"])
    assert (repo, branch) == ("fabrikam-web", "users/me/7-fix-login-bug")
    assert ops[0]["value"]["url"].startswith("vstfs:///Git/Ref/project-guid%2F")
    refresh.assert_called_once_with()
    assert calls == []


def test_create_branch_uses_edited_name(config, api, calls, opened) -> None:
    engine = make_engine(config, api, recording_git(calls), opened)

    result = engine.create_branch(7, "Fix Login Bug!!", confirm_name=lambda name: "hotfix/login")

    assert result.branch_name == "hotfix/login"
    assert api.create_ref.call_args.args[1] == "hotfix/login"


def test_create_branch_cancelled(config, api, calls, opened) -> None:
    engine = make_engine(config, api, recording_git(calls), opened)

    result = engine.create_branch(7, "Fix Login Bug!!", confirm_name=lambda name: "")

    assert result.cancelled
    assert not result.ok
    api.get_branch.assert_not_called()
    api.create_ref.assert_not_called()


def test_rejected_ref_stops_before_link(config, api, calls, opened, reporter) -> None:
    refresh = MagicMock()
    api.create_ref.return_value = {"success": False, "updateStatus": "createBranchPermissionRequired"}
    engine = make_engine(config, api, recording_git(calls), opened, reporter=reporter, on_refresh=refresh)

    result = engine.create_branch(7, "Fix Login Bug!!")

    assert result.failed_step.state == SequenceState.REF_CREATED
    assert "createBranchPermissionRequired" in result.message
    api.update_work_item.assert_not_called()
    refresh.assert_not_called()
    assert len(reporter.step_failures) == 1


def test_run_sequence_stops_at_first_failure() -> None:
    ran = []

    def step(name, ok=True):
        def action():
            ran.append(name)
            return StepOutcome.success() if ok else StepOutcome.failure(f"{name} broke")
        return action

    result = run_sequence("demo", [
        Step(SequenceState.FETCHED, "a", step("a")),
        Step(SequenceState.CHECKED_OUT, "b", step("b", ok=False)),
        Step(SequenceState.SYNCED, "c", step("c")),
    ])

    assert ran == ["a", "b"]
    assert result.failed_step.label == "b"
    assert result.message == "b broke"
    assert result.completed == [SequenceState.FETCHED]
