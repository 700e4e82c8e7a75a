"""Detail session for one work item at a time.

The session owns the context the detail actions need (organization, project,
repository, user and the local git repository). It is opened explicitly, shows
one work item at a time, routes actions to the workflow engine or the editor,
and is closed explicitly.
"""

from boardflow.operations.work_item_editor import WorkItemEditor
from boardflow.operations.workflow_engine import WorkflowEngine
from boardflow.utils.errors import ContextMissingError, TransportError
from boardflow.utils.git_client import GitClient, find_repository

START_WORK = 'startWork'
FINISH_WORK = 'finishWork'
CHECKOUT = 'checkout'
CREATE_BRANCH = 'createBranch'
UPDATE_FIELD = 'updateField'

ACTIONS = (START_WORK, FINISH_WORK, CHECKOUT, CREATE_BRANCH, UPDATE_FIELD)
REQUIRED_CONTEXT = ('org_url', 'project', 'repo', 'user')


class WorkItemSession:
    """Routes detail actions for the work item currently shown."""

    def __init__(self, config, engine, editor, debug_logger=None, exception_reporter=None):
        self.config = config
        self.engine = engine
        self.editor = editor
        self.logger = debug_logger
        self.reporter = exception_reporter
        self.work_item = None
        self._open = True

    @classmethod
    def open(cls, config, boards_api, on_refresh=None, git_client=None, open_url=None,
             step_tracker=None, debug_logger=None, exception_reporter=None):
        """Open a session after checking that the full context is configured.

        Args:
            config (Config): Configuration instance
            boards_api (BoardsAPI): Project-scoped REST endpoints
            on_refresh (callable, optional): Refresh signal for the tree
            git_client (GitClient, optional): Git client; the first repository
                in the workspace is used when omitted
            open_url (callable, optional): Opens pull request pages
            step_tracker (StepTracker, optional): Prints lifecycle steps
            debug_logger (DebugLogger, optional): Debug logger instance
            exception_reporter (ExceptionReporter, optional): Receives problems

        Raises:
            ContextMissingError: If organization, project, repository, user or a
                local git repository is missing
        """
        missing = config.missing_context(*REQUIRED_CONTEXT)
        if git_client is None:
            repo_path = find_repository(config.workspace)
            if repo_path is None:
                missing.append('workspace git repository')
            else:
                git_client = GitClient(repo_path, remote=config.remote, debug_logger=debug_logger)

        if missing:
            if exception_reporter:
                exception_reporter.add_context_error('work item session', missing)
            if debug_logger:
                debug_logger.log(f"ERROR: Cannot open work item session, missing {', '.join(missing)}")
            raise ContextMissingError(missing)

        engine = WorkflowEngine(config, boards_api, git_client, on_refresh=on_refresh,
                                open_url=open_url, step_tracker=step_tracker,
                                debug_logger=debug_logger, exception_reporter=exception_reporter)
        editor = WorkItemEditor(config, boards_api, on_refresh=on_refresh,
                                debug_logger=debug_logger, exception_reporter=exception_reporter)
        return cls(config, engine, editor, debug_logger, exception_reporter)

    @property
    def is_open(self):
        return self._open

    def show(self, work_item):
        """Make ``work_item`` the target of subsequent actions."""
        self._check_open()
        self.work_item = work_item
        if self.logger:
            self.logger.log(f"Showing work item {work_item.id}")

    def dispatch(self, action, value=None, field=None, confirm_name=None):
        """Run a detail action against the shown work item.

        Args:
            action (str): One of ACTIONS
            value: Branch name for the git actions (defaults to the linked
                branch), title for createBranch (defaults to the item title),
                new value for updateField
            field (str, optional): Field reference name for updateField
            confirm_name (callable, optional): Confirms the proposed branch name

        Returns:
            SequenceResult for the sequences; True/False for updateField
        """
        self._check_open()
        if self.work_item is None:
            raise RuntimeError("No work item is shown")
        if action not in ACTIONS:
            raise ValueError(f"Unknown action: {action}")

        item = self.work_item
        if action == START_WORK:
            return self.engine.start_work(item.id, value or item.branch.branch_name)
        if action == FINISH_WORK:
            return self.engine.finish_work(item.id, value or item.branch.branch_name)
        if action == CHECKOUT:
            return self.engine.checkout(item.id, value or item.branch.branch_name)
        if action == CREATE_BRANCH:
            return self.engine.create_branch(item.id, value or item.title, confirm_name)

        try:
            self.editor.update_field(item.id, field, value)
        except TransportError as e:
            if self.logger:
                self.logger.log(f"ERROR: Updating {field} on {item.id} failed: {e}")
            if self.reporter:
                self.reporter.add_transport_error(f"update {field} on #{item.id}", str(e))
            return False
        return True

    def close(self):
        """Close the session; further actions raise."""
        if self._open and self.logger:
            self.logger.log("Work item session closed")
        self._open = False
        self.work_item = None

    def _check_open(self):
        if not self._open:
            raise RuntimeError("The work item session is closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
