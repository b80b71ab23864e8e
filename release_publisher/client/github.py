"""GitHub and GitHub Enterprise release client."""

from __future__ import annotations

import base64
from typing import Any, BinaryIO, Dict, Iterator, List, Optional
from urllib.parse import quote, urlsplit

from ..artifact import Artifact
from ..errors import MilestoneNotFoundError, NotFoundError, ProviderError, RetriableError
from ..models import ChangelogItem, CommitAuthor, ReleaseNotesMode, Repo, first_line, merge_release_notes
from .base import ReleaseClient

PER_PAGE = 100


class GitHubClient(ReleaseClient):
    name = "github"

    def __init__(self, *, upload_url: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.api_url = self.base_url if _is_public_github(self.base_url) else f"{self.base_url}/api/v3"
        if upload_url:
            self.upload_url = upload_url.rstrip("/")
        elif _is_public_github(self.base_url):
            self.upload_url = "https://uploads.github.com"
        else:
            self.upload_url = f"{self.base_url}/api/uploads"

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _api(self, repo: Repo, suffix: str = "") -> str:
        return f"{self.api_url}/repos/{repo.owner}/{repo.name}{suffix}"

    def _paginate(self, url: str, *, operation: str, repo: Repo, params: Optional[Dict[str, Any]] = None) -> Iterator[Dict[str, Any]]:
        next_url: Optional[str] = url
        next_params: Optional[Dict[str, Any]] = {"per_page": PER_PAGE, **(params or {})}
        while next_url:
            response = self._request("GET", next_url, operation=operation, repo=repo, params=next_params)
            for item in response.json() or []:
                yield item
            next_url = (getattr(response, "links", None) or {}).get("next", {}).get("url")
            next_params = None

    def changelog(self, repo: Repo, prev: str, current: str) -> List[ChangelogItem]:
        response = self._request(
            "GET",
            self._api(repo, f"/compare/{quote(prev, safe='')}...{quote(current, safe='')}"),
            operation="compare commits",
            repo=repo,
        )
        items: List[ChangelogItem] = []
        for commit in response.json().get("commits") or []:
            details = commit.get("commit") or {}
            author = details.get("author") or {}
            login = (commit.get("author") or {}).get("login")
            items.append(
                ChangelogItem(
                    sha=commit.get("sha", ""),
                    message=first_line(details.get("message", "")),
                    author_name=author.get("name"),
                    author_email=author.get("email"),
                    author_username=login,
                )
            )
        return items

    def close_milestone(self, repo: Repo, title: str) -> None:
        number: Optional[int] = None
        for milestone in self._paginate(
            self._api(repo, "/milestones"),
            operation="list milestones",
            repo=repo,
            params={"state": "all"},
        ):
            if milestone.get("title") == title:
                number = milestone["number"]
                break
        if number is None:
            raise MilestoneNotFoundError(title, repo=str(repo))
        try:
            self._request(
                "PATCH",
                self._api(repo, f"/milestones/{number}"),
                operation="close milestone",
                repo=repo,
                json={"state": "closed"},
            )
        except NotFoundError as exc:
            raise MilestoneNotFoundError(title, repo=str(repo)) from exc

    def default_branch(self, repo: Repo) -> str:
        response = self._request("GET", self._api(repo), operation="get repository", repo=repo)
        branch = response.json().get("default_branch")
        if not branch:
            raise ProviderError("repository reported no default branch", operation="get repository", repo=str(repo))
        return branch

    def create_or_update_file(
        self,
        repo: Repo,
        commit_author: CommitAuthor,
        content: bytes,
        path: str,
        message: str,
    ) -> None:
        branch = self.resolve_branch(repo, path=path)
        identity = {"name": commit_author.name, "email": commit_author.email}
        payload: Dict[str, Any] = {
            "message": message,
            "branch": branch,
            "author": identity,
            "committer": identity,
            "content": base64.b64encode(content).decode("ascii"),
        }
        url = self._api(repo, f"/contents/{path.lstrip('/')}")
        self.log.info("pushing %s to %s@%s", path, repo, branch)

        try:
            current = self._request("GET", url, operation="get file contents", repo=repo, params={"ref": branch})
        except NotFoundError:
            self._request("PUT", url, operation="create file", repo=repo, json=payload)
            return

        payload["sha"] = current.json()["sha"]
        self._request("PUT", url, operation="update file", repo=repo, json=payload)

    def _existing_release(self, repo: Repo, tag: str) -> Optional[Dict[str, Any]]:
        for release in self._paginate(self._api(repo, "/releases"), operation="list releases", repo=repo):
            if release.get("tag_name") == tag:
                return release
        return None

    def create_or_update_release(
        self,
        repo: Repo,
        tag: str,
        title: str,
        body: str,
        *,
        draft: bool = False,
        prerelease: bool = False,
        target: Optional[str] = None,
        notes_mode: ReleaseNotesMode | str = ReleaseNotesMode.KEEP_EXISTING,
    ) -> str:
        payload: Dict[str, Any] = {
            "tag_name": tag,
            "name": title,
            "draft": draft,
            "prerelease": prerelease,
        }
        if target:
            payload["target_commitish"] = target

        existing = self._existing_release(repo, tag)
        if existing is not None:
            payload["body"] = merge_release_notes(existing.get("body"), body, notes_mode)
            response = self._request(
                "PATCH",
                self._api(repo, f"/releases/{existing['id']}"),
                operation="update release",
                repo=repo,
                json=payload,
            )
            release_id = str(response.json()["id"])
            self.log.info("GitHub release updated (id=%s url=%s)", release_id, response.json().get("html_url"))
            return release_id

        payload["body"] = body
        response = self._request("POST", self._api(repo, "/releases"), operation="create release", repo=repo, json=payload)
        release_id = str(response.json()["id"])
        self.log.info("GitHub release created (id=%s url=%s)", release_id, response.json().get("html_url"))
        return release_id

    def publish_release(self, release_id: str, repo: Optional[Repo] = None) -> None:
        target = repo or self.release_repo
        self._request(
            "PATCH",
            self._api(target, f"/releases/{release_id}"),
            operation="publish release",
            repo=target,
            json={"draft": False},
        )

    def upload(self, release_id: str, artifact: Artifact, file: BinaryIO, repo: Optional[Repo] = None) -> None:
        target = repo or self.release_repo
        try:
            self._request(
                "POST",
                f"{self.upload_url}/repos/{target.owner}/{target.name}/releases/{release_id}/assets",
                operation="upload asset",
                repo=target,
                params={"name": artifact.name},
                data=file,
                headers={"Content-Type": "application/octet-stream"},
            )
        except ProviderError as exc:
            raise RetriableError(exc) from exc


def _is_public_github(url: str) -> bool:
    return urlsplit(url).netloc in {"api.github.com", "github.com"}
