from __future__ import annotations

import base64
import hashlib
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import unquote

import pytest

from release_publisher.artifact import Artifact, Artifacts
from release_publisher.client import GiteaClient
from release_publisher.config import Config
from release_publisher.context import Context, GitInfo
from release_publisher.models import Repo

GITEA_URL = "https://gitea.test"

BASE_CONFIG: Dict[str, Any] = {
    "project_name": "tool",
    "provider": "gitea",
    "provider_urls": {"api": f"{GITEA_URL}/api/v1", "download": GITEA_URL},
    "token_env": "GITEA_TOKEN",
    "release": {"repo": {"owner": "acme", "name": "tool"}},
}

_REPO_URL = re.compile(r"^https://gitea\.test/api/v1/repos/(?P<owner>[^/]+)/(?P<name>[^/]+)(?P<rest>/.*)?$")


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, *, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.reason = "OK" if status_code < 400 else "Error"
        self.links: Dict[str, Dict[str, str]] = {}

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class FakeGitea:
    """In-memory Gitea speaking the slice of the REST API the client uses."""

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.repos: Dict[str, Dict[str, Any]] = {}
        self.releases: Dict[str, List[Dict[str, Any]]] = {}
        self.files: Dict[Tuple[str, str, str], Dict[str, Any]] = {}
        self.milestones: Dict[str, Dict[str, str]] = {}
        self.compares: Dict[Tuple[str, str], List[Dict[str, Any]]] = {}
        self.assets: List[Tuple[int, str, bytes]] = []
        self.upload_status: Optional[int] = None
        self.max_limit: Optional[int] = None
        self._next_id = 100

    def add_release(self, repo: str, tag: str, body: str = "", **fields: Any) -> Dict[str, Any]:
        release = {"id": self._new_id(), "tag_name": tag, "body": body, **fields}
        self.releases.setdefault(repo, []).append(release)
        return release

    def calls_to(self, method: str, fragment: str) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["method"] == method and fragment in call["url"]]

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        verify: bool = True,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        data: Any = None,
    ) -> FakeResponse:
        self.calls.append(
            {"method": method, "url": url, "headers": headers, "params": params, "json": json, "verify": verify}
        )
        match = _REPO_URL.match(url)
        if not match:
            return FakeResponse(404, {"message": "unknown endpoint"})
        repo = f"{match.group('owner')}/{match.group('name')}"
        rest = match.group("rest") or ""

        if rest == "":
            if repo not in self.repos:
                return FakeResponse(404, {"message": "repository not found"})
            return FakeResponse(200, self.repos[repo])
        if rest.startswith("/compare/"):
            prev, _, current = unquote(rest[len("/compare/"):]).partition("...")
            return FakeResponse(200, {"commits": self.compares.get((prev, current), [])})
        if rest == "/releases":
            return self._releases(method, repo, params or {}, json or {})
        found = re.fullmatch(r"/releases/(\d+)", rest)
        if found and method == "PATCH":
            return self._update_release(repo, int(found.group(1)), json or {})
        found = re.fullmatch(r"/releases/(\d+)/assets", rest)
        if found and method == "POST":
            return self._upload(int(found.group(1)), params or {}, files or {})
        if rest.startswith("/milestones/") and method == "PATCH":
            return self._close_milestone(repo, unquote(rest[len("/milestones/"):]))
        if rest.startswith("/contents/"):
            return self._contents(method, repo, rest[len("/contents/"):], params or {}, json or {})
        return FakeResponse(404, {"message": "unknown endpoint"})

    def _releases(self, method: str, repo: str, params: Dict[str, Any], payload: Dict[str, Any]) -> FakeResponse:
        items = self.releases.setdefault(repo, [])
        if method == "GET":
            page, limit = int(params.get("page", 1)), int(params.get("limit", 30))
            if self.max_limit is not None:
                limit = min(limit, self.max_limit)
            return FakeResponse(200, items[(page - 1) * limit : page * limit])
        release = {"id": self._new_id(), **payload}
        items.append(release)
        return FakeResponse(201, release)

    def _update_release(self, repo: str, release_id: int, payload: Dict[str, Any]) -> FakeResponse:
        for release in self.releases.get(repo, []):
            if release["id"] == release_id:
                release.update(payload)
                return FakeResponse(200, release)
        return FakeResponse(404, {"message": "release not found"})

    def _upload(self, release_id: int, params: Dict[str, Any], files: Dict[str, Any]) -> FakeResponse:
        if self.upload_status is not None:
            return FakeResponse(self.upload_status, {"message": "upload rejected"})
        name, handle, _ = files["attachment"]
        self.assets.append((release_id, params["name"], handle.read()))
        return FakeResponse(201, {"name": name})

    def _close_milestone(self, repo: str, title: str) -> FakeResponse:
        milestones = self.milestones.get(repo, {})
        if title not in milestones:
            return FakeResponse(404, {"message": "milestone not found"})
        milestones[title] = "closed"
        return FakeResponse(200, {"title": title, "state": "closed"})

    def _contents(
        self,
        method: str,
        repo: str,
        path: str,
        params: Dict[str, Any],
        payload: Dict[str, Any],
    ) -> FakeResponse:
        if method == "GET":
            current = self.files.get((repo, params.get("ref", ""), path))
            if current is None:
                return FakeResponse(404, {"message": "file not found"})
            return FakeResponse(200, {"sha": current["sha"], "path": path})

        key = (repo, payload["branch"], path)
        if method == "PUT" and self.files.get(key, {}).get("sha") != payload.get("sha"):
            return FakeResponse(409, {"message": "sha mismatch"})
        content = base64.b64decode(payload["content"])
        self.files[key] = {
            "sha": hashlib.sha1(content).hexdigest(),
            "content": content,
            "message": payload["message"],
            "author": payload["author"],
        }
        return FakeResponse(201 if method == "POST" else 200, {"content": {"path": path}})


@pytest.fixture
def gitea() -> FakeGitea:
    return FakeGitea()


@pytest.fixture
def gitea_client(gitea: FakeGitea) -> GiteaClient:
    return GiteaClient(
        base_url=GITEA_URL,
        token="secret",
        release_repo=Repo("acme", "tool"),
        download_url=GITEA_URL,
        session=gitea,  # type: ignore[arg-type]
    )


@pytest.fixture
def make_artifact(tmp_path: Path) -> Callable[..., Artifact]:
    def factory(name: str, content: bytes = b"payload", type: str = "archive", **extra: object) -> Artifact:
        path = tmp_path / "dist" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return Artifact(name=name, path=path, type=type, extra=dict(extra))

    return factory


@pytest.fixture
def make_context() -> Callable[..., Context]:
    def factory(
        config: Optional[Dict[str, Any]] = None,
        *,
        tag: str = "v1.2.0",
        previous_tag: Optional[str] = None,
        commit: str = "abc1234",
        artifacts: Optional[List[Artifact]] = None,
        **kwargs: Any,
    ) -> Context:
        return Context(
            config=Config.model_validate({**BASE_CONFIG, **(config or {})}),
            git=GitInfo(current_tag=tag, commit=commit, previous_tag=previous_tag),
            artifacts=Artifacts(artifacts),
            **kwargs,
        )

    return factory
