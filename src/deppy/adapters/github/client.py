"""GitHub implementation of the source-control port."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from deppy.adapters.http_resilience import ResilientClient
from deppy.domain.ports.source_control import PullRequest, RemoteBranch, SourceControlError

from .schema import GitCommit, GitObject, GitReference, PullRequestPayload

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from deppy.config.github import GitHubConfig
    from deppy.config.http_resilience import ResilienceConfig
    from deppy.domain.ports.source_control import TreeEntry

log = getLogger(__name__)

_PULL_REQUESTS = TypeAdapter(list[PullRequestPayload])


class GitHubSourceControl:
    """Git data and pull request endpoints of one repository."""

    def __init__(
        self,
        *,
        config: GitHubConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._prefix = f"repos/{config.owner}/{config.repo}"

    async def find_branch(self, name: str) -> RemoteBranch | None:
        response = await self._request(
            "GET", f"git/ref/heads/{name}", tolerate=frozenset({httpx.codes.NOT_FOUND})
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        reference = _parse(GitReference, response)
        return RemoteBranch(name=name, head=reference.target.sha)

    async def get_commit_tree(self, commit_id: str) -> str:
        response = await self._request("GET", f"git/commits/{commit_id}")
        return _parse(GitCommit, response).tree.sha

    async def create_tree(self, base_tree: str, entries: Sequence[TreeEntry]) -> str:
        payload = {
            "base_tree": base_tree,
            "tree": [
                {
                    "path": entry.path,
                    "mode": str(entry.mode),
                    "type": "blob",
                    "content": entry.content,
                }
                for entry in entries
            ],
        }
        response = await self._request("POST", "git/trees", json=payload)
        return _parse(GitObject, response).sha

    async def create_commit(self, *, message: str, tree: str, parent: str) -> str:
        payload = {"message": message, "tree": tree, "parents": [parent]}
        response = await self._request("POST", "git/commits", json=payload)
        return _parse(GitObject, response).sha

    async def upsert_branch(self, name: str, commit_id: str) -> None:
        if await self.find_branch(name) is not None:
            log.info("Force-updating branch %s to %s", name, commit_id)
            await self._request(
                "PATCH", f"git/refs/heads/{name}", json={"sha": commit_id, "force": True}
            )
            return
        log.info("Creating branch %s at %s", name, commit_id)
        payload = {"ref": f"refs/heads/{name}", "sha": commit_id}
        await self._request("POST", "git/refs", json=payload)

    async def find_open_pull_request(self, *, head: str, base: str) -> PullRequest | None:
        params = {"state": "open", "head": f"{self._config.owner}:{head}", "base": base}
        response = await self._request("GET", "pulls", params=params)
        try:
            pulls = _PULL_REQUESTS.validate_json(response.content)
        except ValidationError as exc:
            raise SourceControlError("Unexpected pull request listing") from exc
        if not pulls:
            return None
        return PullRequest(number=pulls[0].number, url=pulls[0].html_url)

    async def create_pull_request(
        self, *, title: str, head: str, base: str, body: str
    ) -> PullRequest:
        payload = {"title": title, "head": head, "base": base, "body": body}
        response = await self._request("POST", "pulls", json=payload)
        created = _parse(PullRequestPayload, response)
        return PullRequest(number=created.number, url=created.html_url)

    async def update_pull_request_body(self, number: int, body: str) -> None:
        await self._request("PATCH", f"pulls/{number}", json={"body": body})

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: object | None = None,
        params: dict[str, str] | None = None,
        tolerate: frozenset[int] = frozenset(),
    ) -> httpx.Response:
        url = f"{self._prefix}/{path}"
        async with self._client_factory(self._resilience) as client:
            try:
                response = await client.request(method, url, json=json, params=params)
            except httpx.HTTPError as exc:
                raise SourceControlError(f"{method} {url} failed: {exc}") from exc

        if response.is_error and response.status_code not in tolerate:
            raise SourceControlError(
                f"{method} {url} returned {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response


def _parse[ModelT: BaseModel](model: type[ModelT], response: httpx.Response) -> ModelT:
    try:
        return model.model_validate_json(response.content)
    except ValidationError as exc:
        raise SourceControlError(f"Unexpected response from {response.request.url}") from exc
