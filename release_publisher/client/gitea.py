"""Gitea (and Forgejo) release client."""

from __future__ import annotations

import base64
from typing import Any, BinaryIO, Dict, List, Optional
from urllib.parse import quote

from ..artifact import Artifact
from ..errors import MilestoneNotFoundError, NotFoundError, ProviderError, RetriableError
from ..models import ChangelogItem, CommitAuthor, ReleaseNotesMode, Repo, first_line, merge_release_notes
from .base import ReleaseClient

PAGE_LIMIT = 50


class GiteaClient(ReleaseClient):
    name = "gitea"

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"token {self.token}"
        return headers

    def _api(self, repo: Repo, suffix: str = "") -> str:
        return f"{self.base_url}/api/v1/repos/{repo.owner}/{repo.name}{suffix}"

    def changelog(self, repo: Repo, prev: str, current: str) -> List[ChangelogItem]:
        response = self._request(
            "GET",
            self._api(repo, f"/compare/{quote(prev, safe='')}...{quote(current, safe='')}"),
            operation="compare commits",
            repo=repo,
        )
        items: List[ChangelogItem] = []
        for commit in response.json().get("commits") or []:
            author = commit.get("author") or None
            items.append(
                ChangelogItem(
                    sha=commit.get("sha", ""),
                    message=first_line((commit.get("commit") or {}).get("message", "")),
                    author_name=author.get("full_name") if author else None,
                    author_email=author.get("email") if author else None,
                    author_username=author.get("login") if author else None,
                )
            )
        return items

    def close_milestone(self, repo: Repo, title: str) -> None:
        try:
            self._request(
                "PATCH",
                self._api(repo, f"/milestones/{quote(title, safe='')}"),
                operation="close milestone",
                repo=repo,
                json={"state": "closed", "title": title},
            )
        except NotFoundError as exc:
            raise MilestoneNotFoundError(title, repo=str(repo)) from exc

    def default_branch(self, repo: Repo) -> str:
        try:
            response = self._request("GET", self._api(repo), operation="get repository", repo=repo)
        except ProviderError as exc:
            self.log.warning(
                "error checking for default branch (project=%s status=%s): %s",
                repo,
                exc.status_code,
                exc,
            )
            raise
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
            current = self._request(
                "GET",
                url,
                operation="get file contents",
                repo=repo,
                params={"ref": branch},
            )
        except NotFoundError:
            self._request("POST", url, operation="create file", repo=repo, json=payload)
            return

        payload["sha"] = current.json()["sha"]
        self._request("PUT", url, operation="update file", repo=repo, json=payload)

    def _existing_release(self, repo: Repo, tag: str) -> Optional[Dict[str, Any]]:
        page = 1
        while True:
            response = self._request(
                "GET",
                self._api(repo, "/releases"),
                operation="list releases",
                repo=repo,
                params={"page": page, "limit": PAGE_LIMIT},
            )
            releases = response.json() or []
            # servers may clamp the limit, so only an empty page ends the listing
            if not releases:
                return None
            for release in releases:
                if release.get("tag_name") == tag:
                    return release
            page += 1

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
            try:
                response = self._request(
                    "PATCH",
                    self._api(repo, f"/releases/{existing['id']}"),
                    operation="update release",
                    repo=repo,
                    json=payload,
                )
            except ProviderError as exc:
                self.log.debug("error updating Gitea release: %s", exc)
                raise
            release_id = str(response.json()["id"])
            self.log.info("Gitea release updated (id=%s)", release_id)
            return release_id

        payload["body"] = body
        try:
            response = self._request(
                "POST",
                self._api(repo, "/releases"),
                operation="create release",
                repo=repo,
                json=payload,
            )
        except ProviderError as exc:
            self.log.debug("error creating Gitea release: %s", exc)
            raise
        release_id = str(response.json()["id"])
        self.log.info("Gitea release created (id=%s)", release_id)
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
            numeric_id = int(release_id)
        except ValueError as exc:
            raise ProviderError(f"invalid release id {release_id!r}", operation="upload asset", repo=str(target)) from exc
        try:
            self._request(
                "POST",
                self._api(target, f"/releases/{numeric_id}/assets"),
                operation="upload asset",
                repo=target,
                params={"name": artifact.name},
                files={"attachment": (artifact.name, file, "application/octet-stream")},
            )
        except ProviderError as exc:
            raise RetriableError(exc) from exc
