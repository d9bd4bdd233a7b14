from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from deppy.adapters.github import GitHubSourceControl
from deppy.config.github import GITHUB_API_BASE_URL, GitHubConfig
from deppy.config.http_resilience import ResilienceConfig
from deppy.domain.ports.source_control import (
    FileMode,
    PullRequest,
    RemoteBranch,
    SourceControlError,
    TreeEntry,
)
from tests.helpers.http import RecordingHandler, make_client_factory

PREFIX = "/repos/acme/shop"


def _github(
    routes: dict[tuple[str, str], httpx.Response],
) -> tuple[GitHubSourceControl, RecordingHandler]:
    handler = RecordingHandler(routes)
    config = GitHubConfig(
        token="ghp_test",  # noqa: S106
        owner="acme",
        repo="shop",
        resilience=ResilienceConfig(name="github", base_url=GITHUB_API_BASE_URL, cache=None),
    )
    return GitHubSourceControl(config=config, client_factory=make_client_factory(handler)), handler


def _reference(name: str, sha: str) -> httpx.Response:
    return httpx.Response(
        200,
        json={"ref": f"refs/heads/{name}", "object": {"sha": sha, "type": "commit"}},
    )


def _body(request: httpx.Request) -> dict[str, object]:
    return json.loads(request.content)


def test_find_branch_reads_the_reference() -> None:
    github, _ = _github({("GET", f"{PREFIX}/git/ref/heads/master"): _reference("master", "abc")})

    assert asyncio.run(github.find_branch("master")) == RemoteBranch(name="master", head="abc")


def test_missing_branch_is_none() -> None:
    github, _ = _github({})

    assert asyncio.run(github.find_branch("dependencies-update")) is None


def test_server_error_raises_with_status() -> None:
    github, _ = _github(
        {("GET", f"{PREFIX}/git/commits/abc"): httpx.Response(502, text="Bad Gateway")}
    )

    with pytest.raises(SourceControlError) as excinfo:
        asyncio.run(github.get_commit_tree("abc"))

    assert excinfo.value.status_code == 502


def test_commit_sequence_posts_tree_and_commit() -> None:
    github, handler = _github(
        {
            ("GET", f"{PREFIX}/git/commits/main-head"): httpx.Response(
                200, json={"sha": "main-head", "tree": {"sha": "base-tree"}}
            ),
            ("POST", f"{PREFIX}/git/trees"): httpx.Response(201, json={"sha": "new-tree"}),
            ("POST", f"{PREFIX}/git/commits"): httpx.Response(201, json={"sha": "new-commit"}),
        }
    )
    entries = [
        TreeEntry(path="gradle/wrapper/gradle-wrapper.properties", content="7.5\n"),
        TreeEntry(path="gradlew.sh", content="#!/bin/sh\n", mode=FileMode.EXECUTABLE),
    ]

    async def scenario() -> str:
        base_tree = await github.get_commit_tree("main-head")
        tree = await github.create_tree(base_tree, entries)
        return await github.create_commit(message="Update", tree=tree, parent="main-head")

    assert asyncio.run(scenario()) == "new-commit"
    tree_request, commit_request = handler.requests[1], handler.requests[2]
    assert _body(tree_request) == {
        "base_tree": "base-tree",
        "tree": [
            {
                "path": "gradle/wrapper/gradle-wrapper.properties",
                "mode": "100644",
                "type": "blob",
                "content": "7.5\n",
            },
            {"path": "gradlew.sh", "mode": "100755", "type": "blob", "content": "#!/bin/sh\n"},
        ],
    }
    assert _body(commit_request) == {
        "message": "Update",
        "tree": "new-tree",
        "parents": ["main-head"],
    }


def test_upsert_branch_creates_missing_reference() -> None:
    github, handler = _github(
        {("POST", f"{PREFIX}/git/refs"): httpx.Response(201, json={"ref": "x", "object": {}})}
    )

    asyncio.run(github.upsert_branch("dependencies-update", "new-commit"))

    created = handler.requests[-1]
    assert created.method == "POST"
    assert _body(created) == {"ref": "refs/heads/dependencies-update", "sha": "new-commit"}


def test_upsert_branch_force_updates_existing_reference() -> None:
    github, handler = _github(
        {
            ("GET", f"{PREFIX}/git/ref/heads/dependencies-update"): _reference(
                "dependencies-update", "old-commit"
            ),
            ("PATCH", f"{PREFIX}/git/refs/heads/dependencies-update"): _reference(
                "dependencies-update", "new-commit"
            ),
        }
    )

    asyncio.run(github.upsert_branch("dependencies-update", "new-commit"))

    updated = handler.requests[-1]
    assert updated.method == "PATCH"
    assert _body(updated) == {"sha": "new-commit", "force": True}


def test_find_open_pull_request_filters_by_head_and_base() -> None:
    github, handler = _github(
        {
            ("GET", f"{PREFIX}/pulls"): httpx.Response(
                200, json=[{"number": 7, "html_url": "https://github.com/acme/shop/pull/7"}]
            )
        }
    )

    found = asyncio.run(github.find_open_pull_request(head="dependencies-update", base="master"))

    assert found == PullRequest(number=7, url="https://github.com/acme/shop/pull/7")
    params = handler.requests[0].url.params
    assert params["state"] == "open"
    assert params["head"] == "acme:dependencies-update"
    assert params["base"] == "master"


def test_no_open_pull_request() -> None:
    github, _ = _github({("GET", f"{PREFIX}/pulls"): httpx.Response(200, json=[])})

    assert asyncio.run(github.find_open_pull_request(head="x", base="master")) is None


def test_create_and_update_pull_request() -> None:
    github, handler = _github(
        {
            ("POST", f"{PREFIX}/pulls"): httpx.Response(
                201, json={"number": 8, "html_url": "https://github.com/acme/shop/pull/8"}
            ),
            ("PATCH", f"{PREFIX}/pulls/8"): httpx.Response(200, json={"number": 8}),
        }
    )

    async def scenario() -> PullRequest:
        created = await github.create_pull_request(
            title="Dependencies update", head="dependencies-update", base="master", body="first"
        )
        await github.update_pull_request_body(created.number, "second")
        return created

    assert asyncio.run(scenario()).number == 8
    assert _body(handler.requests[0]) == {
        "title": "Dependencies update",
        "head": "dependencies-update",
        "base": "master",
        "body": "first",
    }
    assert _body(handler.requests[1]) == {"body": "second"}


def test_unexpected_payload_raises() -> None:
    github, _ = _github(
        {("GET", f"{PREFIX}/git/commits/abc"): httpx.Response(200, json={"sha": "abc"})}
    )

    with pytest.raises(SourceControlError):
        asyncio.run(github.get_commit_tree("abc"))
