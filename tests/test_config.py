from __future__ import annotations

import os
from types import SimpleNamespace

from boardflow.models.query import Query
from boardflow.utils.config import Config, parse_queries


def test_defaults(clean_env, tmp_path) -> None:
    config = Config.from_env(str(tmp_path / "absent.env"))

    assert config.org_url is None
    assert config.integration_branch == "master"
    assert config.remote == "origin"
    assert (config.active_state, config.resolved_state) == ("Active", "Resolved")
    assert config.api_version == "7.0"
    assert config.request_timeout == 60
    assert config.queries == []
    assert config.debug is False


def test_from_env_file(clean_env, tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "BOARDFLOW_ORG_URL=https://dev.azure.com/contoso/\n"
        "BOARDFLOW_PROJECT=Fabrikam\n"
        "BOARDFLOW_PAT=secret\n"
        "BOARDFLOW_QUERIES=My Work=q-mine;Bugs=q-bugs\n"
        "BOARDFLOW_INTEGRATION_BRANCH=main\n"
        "BOARDFLOW_REQUEST_TIMEOUT=15\n"
        "BOARDFLOW_DEBUG=True\n",
        encoding="utf-8",
    )

    config = Config.from_env(str(env_file))

    assert config.org_url == "https://dev.azure.com/contoso"
    assert config.project == "Fabrikam"
    assert config.queries == [Query("q-mine", "My Work"), Query("q-bugs", "Bugs")]
    assert config.integration_branch == "main"
    assert config.request_timeout == 15
    assert config.debug is True


def test_environment_wins_over_env_file(clean_env, tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("BOARDFLOW_PROJECT=FromFile\n", encoding="utf-8")
    clean_env.setenv("BOARDFLOW_PROJECT", "FromEnvironment")

    assert Config.from_env(str(env_file)).project == "FromEnvironment"


def test_from_args_overrides(tmp_path) -> None:
    config = Config()
    config.project = "Fabrikam"
    args = SimpleNamespace(org_url="https://dev.azure.com/other/", project=None, repo="api",
                           workspace=str(tmp_path), debug=True)

    Config.from_args(args, config)

    assert config.org_url == "https://dev.azure.com/other"
    assert config.project == "Fabrikam"
    assert config.repo == "api"
    assert config.workspace == str(tmp_path)
    assert config.debug is True


def test_parse_queries() -> None:
    queries = parse_queries(" My Work = q-mine ;; q-plain ; Empty= ")

    assert [(q.name, q.id) for q in queries] == [("My Work", "q-mine"), ("q-plain", "q-plain")]
    assert parse_queries("") == []


def test_missing_context_and_workspace(config, tmp_path) -> None:
    assert config.missing_context("org_url", "project", "repo", "user") == []
    assert config.has_workspace()

    config.project = ""
    config.user = None
    config.workspace = os.path.join(str(tmp_path), "gone")

    assert config.missing_context("org_url", "project", "repo", "user") == ["project", "user"]
    assert not config.has_workspace()


def test_validate(config) -> None:
    assert config.validate() == (True, None)

    config.pat = None
    is_valid, error = config.validate()
    assert not is_valid
    assert "access token" in error
