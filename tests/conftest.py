from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from boardflow.models.query import Query
from boardflow.utils.config import Config
from boardflow.utils.exception_reporter import ExceptionReporter

ORG_ID = "80af8dad-aacc-1122-2233-85e619864277"
REPO_ID = "cd9b62b1-9771-aaaa-bbbb-2730fbf73b6e"


def work_item_payload(item_id, title="Item", parent=None, state="New", item_type="Task",
                      assignee=None, relations=None, story_points=None):
    """Build a work item payload shaped like the $expand=all response."""
    fields = {
        "System.Id": item_id,
        "System.WorkItemType": item_type,
        "System.Title": title,
        "System.State": state,
        "System.Reason": "New",
    }
    if parent is not None:
        fields["System.Parent"] = parent
    if assignee is not None:
        fields["System.AssignedTo"] = assignee
    if story_points is not None:
        fields["Microsoft.VSTS.Scheduling.StoryPoints"] = story_points
    payload = {
        "id": item_id,
        "fields": fields,
        "_links": {"html": {"href": f"https://dev.azure.com/contoso/_workitems/edit/{item_id}"}},
    }
    if relations is not None:
        payload["relations"] = relations
    return payload


def identity(unique_name, display_name=None, image_url=None):
    data = {"displayName": display_name or unique_name, "uniqueName": unique_name}
    if image_url:
        data["imageUrl"] = image_url
    return data


def branch_relation(branch_name, repo_id=REPO_ID, org_id=ORG_ID):
    encoded = f"{org_id}%2F{repo_id}%2FGB" + branch_name.replace("/", "%2F")
    return {
        "rel": "ArtifactLink",
        "url": f"vstfs:///Git/Ref/{encoded}",
        "attributes": {"name": "Branch"},
    }


@pytest.fixture
def config(tmp_path) -> Config:
    cfg = Config()
    cfg.org_url = "https://dev.azure.com/contoso"
    cfg.project = "Fabrikam"
    cfg.repo = "fabrikam-web"
    cfg.user = "me@contoso.com"
    cfg.pat = "secret"
    cfg.branch_prefix = "users/me/"
    cfg.workspace = str(tmp_path)
    cfg.queries = [Query("q-mine", "My Work"), Query("q-bugs", "Bugs")]
    return cfg


@pytest.fixture
def api() -> MagicMock:
    fake = MagicMock()
    fake.run_query.return_value = {"workItems": []}
    fake.get_work_items.return_value = []
    fake.get_avatar.return_value = {"imageType": "image/png", "imageData": "AAAA"}
    fake.get_branch.side_effect = lambda repo, name, base_branch=None: {
        "name": name,
        "aheadCount": 2,
        "behindCount": 1,
        "commit": {"commitId": "c0ffee"},
    }
    fake.create_ref.return_value = {"success": True, "name": "refs/heads/x"}
    fake.get_project.return_value = {"id": "project-guid", "name": "Fabrikam"}
    return fake


@pytest.fixture
def reporter() -> ExceptionReporter:
    return ExceptionReporter()


ENV_KEYS = (
    "BOARDFLOW_ORG_URL", "BOARDFLOW_PROJECT", "BOARDFLOW_REPO", "BOARDFLOW_USER",
    "BOARDFLOW_PAT", "BOARDFLOW_DEBUG", "BOARDFLOW_LOG_FILE", "BOARDFLOW_BRANCH_PREFIX",
    "BOARDFLOW_QUERIES", "BOARDFLOW_WORKSPACE", "BOARDFLOW_INTEGRATION_BRANCH",
    "BOARDFLOW_REMOTE", "BOARDFLOW_ACTIVE_STATE", "BOARDFLOW_RESOLVED_STATE",
    "BOARDFLOW_API_VERSION", "BOARDFLOW_REQUEST_TIMEOUT",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Unset every BOARDFLOW_* variable, including ones a .env file loads later."""
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch
