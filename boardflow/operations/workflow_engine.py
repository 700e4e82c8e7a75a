"""Start-work, finish-work and branch creation sequences.

Each sequence is a fixed list of steps. A step reports success or failure
through a StepOutcome; run_sequence stops at the first failure and nothing that
already happened is undone. A sequence that reaches its final state fires the
refresh signal.
"""

import re
import webbrowser
from enum import Enum
from urllib.parse import quote

from boardflow.operations.base import Operation
from boardflow.models.work_item import WorkItemField
from boardflow.utils.branch_link import encode_branch_link, BRANCH_RELATION_NAME
from boardflow.utils.errors import TransportError, VersionControlStepError

START_WORK = "Start work"
FINISH_WORK = "Finish work"
CREATE_BRANCH = "Create branch"
CHECKOUT = "Checkout"


class SequenceState(Enum):
    IDLE = 'idle'
    FETCHED = 'fetched'
    CHECKED_OUT = 'checked-out'
    SYNCED = 'synced'
    REBASED = 'rebased'
    ITEM_ACTIVATED = 'item-activated'
    PUSHED = 'pushed'
    SWITCHED_TO_INTEGRATION = 'switched-to-integration'
    BRANCH_DELETED = 'branch-deleted'
    PR_OPENED = 'pr-opened'
    ITEM_RESOLVED = 'item-resolved'
    HEAD_RESOLVED = 'head-resolved'
    REF_CREATED = 'ref-created'
    BRANCH_LINKED = 'branch-linked'
    ERROR = 'error'


class StepOutcome:
    """Result of a single step."""

    def __init__(self, ok, message=None):
        self.ok = ok
        self.message = message

    @classmethod
    def success(cls):
        return cls(True)

    @classmethod
    def failure(cls, message):
        return cls(False, message)

    def __repr__(self):
        return "StepOutcome(ok)" if self.ok else f"StepOutcome(failed: {self.message})"


class Step:
    """A named step that moves a sequence into ``state`` when it succeeds."""

    def __init__(self, state, label, action):
        """Initialize a Step.

        Args:
            state (SequenceState): State reached on success
            label (str): Human readable description
            action (callable): Takes no arguments and returns a StepOutcome
        """
        self.state = state
        self.label = label
        self.action = action


class SequenceResult:
    """Where a sequence ended and why."""

    def __init__(self, name, state, completed, failed_step=None, message=None, cancelled=False):
        self.name = name
        self.state = state
        self.completed = list(completed)
        self.failed_step = failed_step
        self.message = message
        self.cancelled = cancelled
        self.branch_name = None

    @property
    def ok(self):
        return self.failed_step is None and not self.cancelled

    def __repr__(self):
        if self.ok:
            return f"SequenceResult({self.name}: {self.state.value})"
        if self.cancelled:
            return f"SequenceResult({self.name}: cancelled)"
        return f"SequenceResult({self.name}: failed at {self.failed_step.label})"


def attempt(action):
    """Run ``action`` and turn git or API errors into a failed StepOutcome."""
    try:
        action()
    except VersionControlStepError as e:
        return StepOutcome.failure(e.stderr or str(e))
    except TransportError as e:
        return StepOutcome.failure(str(e))
    return StepOutcome.success()


def run_sequence(name, steps, tracker=None):
    """Run steps in order until one fails.

    Args:
        name (str): Sequence name for reporting
        steps (list): Step objects
        tracker (StepTracker, optional): Prints step progress

    Returns:
        SequenceResult: The last state reached, and the failing step if any
    """
    state = SequenceState.IDLE
    completed = []
    for step in steps:
        if tracker:
            tracker.start_step(step.label)
        outcome = step.action()
        if tracker:
            tracker.end_step(step.label, outcome.ok, outcome.message)
        if not outcome.ok:
            return SequenceResult(name, SequenceState.ERROR, completed,
                                  failed_step=step, message=outcome.message)
        state = step.state
        completed.append(step.state)
    return SequenceResult(name, state, completed)


def propose_branch_name(title, prefix, item_id):
    """Suggest a branch name for a work item.

    >>> propose_branch_name("Fix Login Bug!!", "users/me/", 7)
    'users/me/7-fix-login-bug'
    """
    slug = re.sub(r'[^a-zA-Z0-9 ]', '', (title or '').lower()).strip().replace(' ', '-')
    return f"{prefix or ''}{item_id}-{slug}"


class WorkflowEngine(Operation):
    """Drive the lifecycle sequences against git and the work item API."""

    def __init__(self, config, boards_api, git_client, on_refresh=None, open_url=None,
                 step_tracker=None, debug_logger=None, exception_reporter=None):
        """Initialize the engine.

        Args:
            config (Config): Configuration instance (repo, user, states, integration branch)
            boards_api (BoardsAPI): Project-scoped REST endpoints
            git_client (GitClient): Git client for the tracked repository
            on_refresh (callable, optional): Refresh signal fired after a successful sequence
            open_url (callable, optional): Opens a URL externally (webbrowser.open by default)
            step_tracker (StepTracker, optional): Prints step progress
            debug_logger (DebugLogger, optional): Debug logger instance
            exception_reporter (ExceptionReporter, optional): Receives failed steps
        """
        super().__init__(config, boards_api, debug_logger=debug_logger,
                         exception_reporter=exception_reporter)
        self.git = git_client
        self.on_refresh = on_refresh
        self.open_url = open_url or webbrowser.open
        self.tracker = step_tracker
        self._project_id = None

    @property
    def integration_ref(self):
        return f"{self.config.remote}/{self.config.integration_branch}"

    def start_work(self, item_id, branch_name):
        """Bring the item's branch up to date and mark the item as in progress.

        fetch -> checkout <branch> -> pull -> rebase <remote>/<integration> ->
        assign to the current user and set the active state.
        """
        self._require_branch(item_id, branch_name)
        steps = [
            Step(SequenceState.FETCHED, "git fetch",
                 lambda: attempt(self.git.fetch)),
            Step(SequenceState.CHECKED_OUT, f"git checkout {branch_name}",
                 lambda: attempt(lambda: self.git.checkout(branch_name))),
            Step(SequenceState.SYNCED, "git pull",
                 lambda: attempt(self.git.pull)),
            Step(SequenceState.REBASED, f"git rebase {self.integration_ref}",
                 lambda: attempt(lambda: self.git.rebase(self.integration_ref))),
            Step(SequenceState.ITEM_ACTIVATED, f"Set state to {self.config.active_state}",
                 lambda: attempt(lambda: self.api.update_work_item(item_id, [
                     {'op': 'replace', 'path': WorkItemField.ASSIGNED_TO.path,
                      'value': self.config.user},
                     {'op': 'replace', 'path': WorkItemField.STATE.path,
                      'value': self.config.active_state},
                 ]))),
        ]
        return self._run(START_WORK, item_id, steps)

    def finish_work(self, item_id, branch_name):
        """Publish the item's branch, open a pull request and resolve the item.

        fetch -> checkout <branch> -> push -> checkout <integration> ->
        delete <branch> -> open the pull request page -> set the resolved state.
        """
        self._require_branch(item_id, branch_name)
        integration = self.config.integration_branch
        steps = [
            Step(SequenceState.FETCHED, "git fetch",
                 lambda: attempt(self.git.fetch)),
            Step(SequenceState.CHECKED_OUT, f"git checkout {branch_name}",
                 lambda: attempt(lambda: self.git.checkout(branch_name))),
            Step(SequenceState.PUSHED, "git push",
                 lambda: attempt(self.git.push)),
            Step(SequenceState.SWITCHED_TO_INTEGRATION, f"git checkout {integration}",
                 lambda: attempt(lambda: self.git.checkout(integration))),
            Step(SequenceState.BRANCH_DELETED, f"git branch -d {branch_name}",
                 lambda: attempt(lambda: self.git.delete_branch(branch_name))),
            Step(SequenceState.PR_OPENED, f"Open pull request for {branch_name}",
                 lambda: self._open_pull_request(branch_name)),
            Step(SequenceState.ITEM_RESOLVED, f"Set state to {self.config.resolved_state}",
                 lambda: attempt(lambda: self.api.update_work_item(item_id, [
                     {'op': 'replace', 'path': WorkItemField.STATE.path,
                      'value': self.config.resolved_state},
                 ]))),
        ]
        return self._run(FINISH_WORK, item_id, steps)

    def checkout(self, item_id, branch_name):
        """Check out the item's branch without touching the item."""
        self._require_branch(item_id, branch_name)
        steps = [
            Step(SequenceState.CHECKED_OUT, f"git checkout {branch_name}",
                 lambda: attempt(lambda: self.git.checkout(branch_name))),
        ]
        return self._run(CHECKOUT, item_id, steps)

    def create_branch(self, item_id, title, confirm_name=None):
        """Create a remote branch off the integration branch head and link it to the item.

        Args:
            item_id (int): Work item to link the branch to
            title (str): Work item title the proposed name is derived from
            confirm_name (callable, optional): Receives the proposed name and returns
                the name to use; an empty answer cancels

        Returns:
            SequenceResult: With ``branch_name`` set to the name that was used
        """
        name = propose_branch_name(title, self.config.branch_prefix, item_id)
        if confirm_name:
            name = (confirm_name(name) or '').strip()
        if not name:
            self.log(f"Branch creation for {item_id} cancelled")
            return SequenceResult(CREATE_BRANCH, SequenceState.IDLE, [], cancelled=True)

        repo = self.config.repo
        head = {}

        def resolve_head():
            stats = self.api.get_branch(repo, self.config.integration_branch)
            commit_id = ((stats or {}).get('commit') or {}).get('commitId')
            if not commit_id:
                raise TransportError('GET', f"{repo}/{self.config.integration_branch}",
                                     "branch has no head commit")
            head['commit_id'] = commit_id

        def create_ref():
            try:
                result = self.api.create_ref(repo, name, head['commit_id'])
            except TransportError as e:
                return StepOutcome.failure(str(e))
            if not result.get('success'):
                detail = result.get('customMessage') or result.get('updateStatus') or 'rejected'
                return StepOutcome.failure(f"Failed to create remote branch {name}: {detail}")
            return StepOutcome.success()

        def link_branch():
            url = encode_branch_link(self.project_id(), repo, name)
            self.api.update_work_item(item_id, [{
                'op': 'add',
                'path': '/relations/-',
                'value': {
                    'rel': 'ArtifactLink',
                    'url': url,
                    'attributes': {'name': BRANCH_RELATION_NAME}
                }
            }])

        steps = [
            Step(SequenceState.HEAD_RESOLVED, f"Resolve head of {self.config.integration_branch}",
                 lambda: attempt(resolve_head)),
            Step(SequenceState.REF_CREATED, f"Create refs/heads/{name}", create_ref),
            Step(SequenceState.BRANCH_LINKED, f"Link {name} to work item {item_id}",
                 lambda: attempt(link_branch)),
        ]
        result = self._run(CREATE_BRANCH, item_id, steps)
        result.branch_name = name
        return result

    def project_id(self):
        """The project's id, looked up once."""
        if self._project_id is None:
            project = self.api.get_project() or {}
            self._project_id = project.get('id') or self.config.project
        return self._project_id

    def pull_request_url(self, branch_name):
        return (f"{self.config.org_url}/{quote(self.config.project, safe='')}"
                f"/_git/{quote(self.config.repo, safe='')}"
                f"/pullrequestcreate?sourceRef={quote(branch_name, safe='')}")

    def _open_pull_request(self, branch_name):
        url = self.pull_request_url(branch_name)
        self.log(f"Opening {url}")
        try:
            self.open_url(url)
        except webbrowser.Error as e:
            self.log(f"WARNING: Could not open a browser for {url}: {e}")
        return StepOutcome.success()

    def _require_branch(self, item_id, branch_name):
        if not branch_name:
            raise ValueError(f"Work item {item_id} has no linked branch")

    def _run(self, name, item_id, steps):
        if self.tracker:
            self.tracker.start_sequence(name, item_id)
        self.log(f"{name} for work item {item_id}")

        result = run_sequence(name, steps, self.tracker)

        if result.ok:
            self.log(f"{name} for work item {item_id} finished ({result.state.value})")
            if self.on_refresh:
                self.on_refresh()
        else:
            self.log(f"ERROR: {name} for work item {item_id} stopped at "
                     f"'{result.failed_step.label}': {result.message}")
            if self.reporter:
                self.reporter.add_step_failure(name, item_id, result.failed_step.label,
                                               result.message)
        return result
