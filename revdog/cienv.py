"""Build information gathered from the environment variables of CI services."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from typing import Any

_PR_NUMBER_RE = re.compile(r"[1-9][0-9]*\Z")

_SLUG_ENVS = (
    "TRAVIS_REPO_SLUG",
    "DRONE_REPO",  # drone <= 0.4
    "BITBUCKET_REPO_FULL_NAME",
)
_OWNER_ENVS = (
    "CI_REPO_OWNER",
    "CIRCLE_PROJECT_USERNAME",
    "DRONE_REPO_OWNER",
    "CI_PROJECT_NAMESPACE",
)
_REPO_ENVS = (
    "CI_REPO_NAME",
    "CIRCLE_PROJECT_REPONAME",
    "DRONE_REPO_NAME",
    "CI_PROJECT_NAME",
)
_SHA_ENVS = (
    "CI_COMMIT",
    "TRAVIS_PULL_REQUEST_SHA",
    "TRAVIS_COMMIT",
    "CIRCLE_SHA1",
    "DRONE_COMMIT",
    "CI_COMMIT_SHA",
    "BITBUCKET_COMMIT",
)
_BRANCH_ENVS = (
    "CI_BRANCH",
    "TRAVIS_PULL_REQUEST_BRANCH",
    "CIRCLE_BRANCH",
    "DRONE_COMMIT_BRANCH",
    "BITBUCKET_PR_DESTINATION_BRANCH",
    "BITBUCKET_BRANCH",
)
_PULL_REQUEST_ENVS = (
    "CI_PULL_REQUEST",
    "TRAVIS_PULL_REQUEST",
    "CIRCLE_PULL_REQUEST",
    "CIRCLE_PR_NUMBER",
    "DRONE_PULL_REQUEST",
    "CI_MERGE_REQUEST_IID",
    "BITBUCKET_PR_ID",
)


class CIEnvError(Exception):
    """Required build information is missing from the environment."""


@dataclass
class BuildInfo:
    """Build information about a repository on a hosting service."""

    owner: str = ""
    repo: str = ""
    sha: str = ""
    pull_request: int = 0
    branch: str = ""
    gerrit_change_id: str = ""
    gerrit_revision_id: str = ""
    gitlab_project_id: str = ""


def _env(name: str) -> str:
    return os.environ.get(name, "")


def _first_env(names: tuple[str, ...]) -> str:
    return next((value for value in map(_env, names) if value), "")


def _owner_and_repo_from_slug(names: tuple[str, ...]) -> tuple[str, str]:
    owner, sep, repo = _first_env(names).partition("/")
    if not sep:
        return "", ""
    return owner, repo


def _pull_request_number() -> int:
    for name in _PULL_REQUEST_ENVS:
        match = _PR_NUMBER_RE.search(_env(name))
        if match:
            return int(match.group())
    return 0


def get_build_info() -> tuple[BuildInfo, bool]:
    """Return the build information and whether this is a pull request build."""
    if is_in_github_action():
        return _build_info_from_github_action()
    owner, repo = _owner_and_repo_from_slug(_SLUG_ENVS)
    if not owner:
        owner = _first_env(_OWNER_ENVS)
    if not owner:
        raise CIEnvError(
            "cannot get repo owner from environment variable. Set CI_REPO_OWNER?"
        )
    if not repo:
        repo = _first_env(_REPO_ENVS)
    if not repo:
        raise CIEnvError(
            "cannot get repo name from environment variable. Set CI_REPO_NAME?"
        )
    sha = _first_env(_SHA_ENVS)
    if not sha:
        raise CIEnvError(
            "cannot get commit SHA from environment variable. Set CI_COMMIT?"
        )
    pr = _pull_request_number()
    info = BuildInfo(
        owner=owner,
        repo=repo,
        sha=sha,
        pull_request=pr,
        branch=_first_env(_BRANCH_ENVS),
        gitlab_project_id=_env("CI_PROJECT_ID"),
    )
    return info, pr != 0


def get_gerrit_build_info() -> BuildInfo:
    """Return Gerrit specific build information."""
    change_id = _env("GERRIT_CHANGE_ID")
    if not change_id:
        raise CIEnvError(
            "cannot get change id from environment variable. Set GERRIT_CHANGE_ID ?"
        )
    revision_id = _env("GERRIT_REVISION_ID")
    if not revision_id:
        raise CIEnvError(
            "cannot get revision id from environment variable. Set GERRIT_REVISION_ID ?"
        )
    branch = _env("GERRIT_BRANCH")
    if not branch:
        raise CIEnvError(
            "cannot get branch from environment variable. Set GERRIT_BRANCH ?"
        )
    return BuildInfo(
        gerrit_change_id=change_id, gerrit_revision_id=revision_id, branch=branch
    )


def _obj(data: Any, key: str) -> dict:
    value = data.get(key) if isinstance(data, dict) else None
    return value if isinstance(value, dict) else {}


def _str(data: dict, key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def _int(data: dict, key: str) -> int:
    value = data.get(key)
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


@dataclass
class _PullRequest:
    number: int = 0
    head_sha: str = ""
    head_ref: str = ""
    head_owner_id: int = 0
    base_owner_id: int = 0

    @classmethod
    def from_json(cls, data: Any) -> _PullRequest:
        data = data if isinstance(data, dict) else {}
        head = _obj(data, "head")
        base = _obj(data, "base")
        return cls(
            number=_int(data, "number"),
            head_sha=_str(head, "sha"),
            head_ref=_str(head, "ref"),
            head_owner_id=_int(_obj(_obj(head, "repo"), "owner"), "id"),
            base_owner_id=_int(_obj(_obj(base, "repo"), "owner"), "id"),
        )


@dataclass
class GitHubEvent:
    """The parts of a GitHub Actions event payload that matter here."""

    pull_request: _PullRequest = field(default_factory=_PullRequest)
    repository_owner: str = ""
    repository_name: str = ""
    check_suite_after: str = ""
    check_suite_pull_requests: list[_PullRequest] = field(default_factory=list)
    head_commit_id: str = ""
    action_name: str = ""

    @classmethod
    def from_json(cls, data: dict, action_name: str = "") -> GitHubEvent:
        repository = _obj(data, "repository")
        check_suite = _obj(data, "check_suite")
        prs = check_suite.get("pull_requests")
        return cls(
            pull_request=_PullRequest.from_json(data.get("pull_request")),
            repository_owner=_str(_obj(repository, "owner"), "login"),
            repository_name=_str(repository, "name"),
            check_suite_after=_str(check_suite, "after"),
            check_suite_pull_requests=[
                _PullRequest.from_json(pr) for pr in prs
            ] if isinstance(prs, list) else [],
            head_commit_id=_str(_obj(data, "head_commit"), "id"),
            action_name=action_name,
        )


def load_github_event() -> GitHubEvent:
    """Load the event of the running GitHub Actions workflow."""
    path = _env("GITHUB_EVENT_PATH")
    if not path:
        raise CIEnvError("GITHUB_EVENT_PATH not found")
    return load_github_event_from_path(path)


def load_github_event_from_path(path: str | os.PathLike) -> GitHubEvent:
    """Load a GitHub event payload from a JSON file."""
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise CIEnvError(f"GitHub event in {path} is not a JSON object")
    return GitHubEvent.from_json(data, _env("GITHUB_EVENT_NAME"))


def _build_info_from_github_action() -> tuple[BuildInfo, bool]:
    path = _env("GITHUB_EVENT_PATH")
    if not path:
        raise CIEnvError("GITHUB_EVENT_PATH not found")
    return build_info_from_github_event_path(path)


def build_info_from_github_event_path(
    path: str | os.PathLike,
) -> tuple[BuildInfo, bool]:
    """Build information from a GitHub event file, and whether it is a PR."""
    event = load_github_event_from_path(path)
    pr = event.pull_request
    info = BuildInfo(
        owner=event.repository_owner,
        repo=event.repository_name,
        pull_request=pr.number,
        branch=pr.head_ref,
        sha=pr.head_sha,
    )
    # A re-run check_suite event carries its pull requests elsewhere.
    if info.pull_request == 0 and event.check_suite_pull_requests:
        first = event.check_suite_pull_requests[0]
        info.pull_request = first.number
        info.branch = first.head_ref
        info.sha = first.head_sha
    if not info.sha:
        info.sha = event.head_commit_id
    return info, info.pull_request != 0


def is_in_github_action() -> bool:
    """Whether this runs inside GitHub Actions."""
    return _env("GITHUB_ACTIONS") != ""


def has_read_only_permission_github_token() -> bool:
    """Whether this runs for a pull request from a fork with a read-only token."""
    try:
        event = load_github_event()
    except (CIEnvError, OSError, ValueError):
        return False
    pr = event.pull_request
    is_forked = pr.head_owner_id != pr.base_owner_id
    return is_forked and event.action_name != "pull_request_target"


def is_in_bitbucket_pipeline() -> bool:
    """Whether this runs inside Bitbucket Pipelines."""
    return _env("BITBUCKET_PIPELINE_UUID") != ""


def is_in_bitbucket_pipe() -> bool:
    """Whether this runs inside a Bitbucket Pipe."""
    return (
        _env("BITBUCKET_PIPE_STORAGE_DIR") != ""
        or _env("BITBUCKET_PIPE_SHARED_STORAGE_DIR") != ""
    )