from __future__ import annotations

from typing import Any, List

import pytest

from release_publisher.errors import ProviderError, RetriableError
from release_publisher.stages import ReleaseStage, upload_with_retry


class _FlakyClient:
    def __init__(self, failures: List[Exception]) -> None:
        self.failures = list(failures)
        self.uploads: List[tuple[str, str, bytes]] = []
        self.attempts = 0

    def upload(self, release_id: str, artifact: Any, file: Any, repo: Any = None) -> None:
        self.attempts += 1
        if self.failures:
            raise self.failures.pop(0)
        self.uploads.append((release_id, artifact.name, file.read()))


def _retriable(message: str) -> RetriableError:
    return RetriableError(ProviderError(message, operation="upload asset"))


def test_upload_with_retry_recovers(make_artifact) -> None:
    client = _FlakyClient([_retriable("timeout"), _retriable("502")])
    delays: List[float] = []

    upload_with_retry(client, "1", make_artifact("tool.tar.gz", b"abc"), delay=0.5, sleep=delays.append)  # type: ignore[arg-type]

    assert client.uploads == [("1", "tool.tar.gz", b"abc")]
    assert delays == [0.5, 1.0]


def test_upload_with_retry_stops_on_identical_failures(make_artifact) -> None:
    client = _FlakyClient([_retriable("already exists")] * 10)

    with pytest.raises(RetriableError, match="already exists"):
        upload_with_retry(client, "1", make_artifact("tool.tar.gz"), attempts=10, sleep=lambda _: None)  # type: ignore[arg-type]

    assert client.attempts == 3


def test_upload_with_retry_gives_up_after_attempts(make_artifact) -> None:
    client = _FlakyClient([_retriable(f"failure {index}") for index in range(5)])

    with pytest.raises(RetriableError, match="failure 3"):
        upload_with_retry(client, "1", make_artifact("tool.tar.gz"), attempts=4, sleep=lambda _: None)  # type: ignore[arg-type]

    assert client.attempts == 4


def test_upload_with_retry_does_not_retry_other_errors(make_artifact) -> None:
    client = _FlakyClient([ProviderError("bad id", operation="upload asset")])

    with pytest.raises(ProviderError):
        upload_with_retry(client, "1", make_artifact("tool.tar.gz"), sleep=lambda _: None)  # type: ignore[arg-type]

    assert client.attempts == 1


def test_release_stage_creates_release_and_uploads(gitea, gitea_client, make_context, make_artifact) -> None:
    ctx = make_context(
        artifacts=[
            make_artifact("tool.tar.gz", b"archive"),
            make_artifact("checksums.txt", b"sums", type="checksum"),
            make_artifact("metadata.json", b"{}", type="metadata"),
        ],
        release_notes="hand written",
    )

    ReleaseStage(lambda ctx: gitea_client, sleep=lambda _: None).run(ctx)

    (release,) = gitea.releases["acme/tool"]
    assert ctx.release_id == str(release["id"])
    assert ctx.release_url == "https://gitea.test/acme/tool/releases/download/{tag!u}/{artifact_name}"
    assert release["tag_name"] == "v1.2.0"
    assert release["target_commitish"] == "abc1234"
    assert release["body"] == "hand written"
    assert sorted(name for _, name, _ in gitea.assets) == ["checksums.txt", "tool.tar.gz"]
    (create,) = [call for call in gitea.calls if call["method"] == "POST" and call["url"].endswith("/releases")]
    assert create["json"]["draft"] is True
    assert release["draft"] is False
    (publish,) = gitea.calls_to("PATCH", f"/releases/{release['id']}")
    assert gitea.calls.index(publish) > max(gitea.calls.index(call) for call in gitea.calls_to("POST", "/assets"))


def test_release_stage_builds_notes_from_changelog(gitea, gitea_client, make_context) -> None:
    gitea.compares[("v1.1.0", "abc1234")] = [
        {"sha": "1111111aaaa", "commit": {"message": "feat: thing"}, "author": {"login": "ada"}},
    ]
    ctx = make_context(
        {
            "release": {
                "repo": {"owner": "acme", "name": "tool"},
                "header": "# {project_name} {version}",
                "footer": "Full diff: {previous_tag}...{tag}",
                "target_commitish": "release/{version}",
            }
        },
        previous_tag="v1.1.0",
    )

    ReleaseStage(lambda ctx: gitea_client).run(ctx)

    (release,) = gitea.releases["acme/tool"]
    assert release["body"] == (
        "# tool 1.2.0\n\n## Changelog\n\n* 1111111 feat: thing (@ada)\n\nFull diff: v1.1.0...v1.2.0"
    )
    assert release["target_commitish"] == "release/1.2.0"


def test_release_stage_skip_upload(gitea, gitea_client, make_context, make_artifact) -> None:
    ctx = make_context(
        {"release": {"repo": {"owner": "acme", "name": "tool"}, "skip_upload": True}},
        artifacts=[make_artifact("tool.tar.gz")],
    )

    ReleaseStage(lambda ctx: gitea_client).run(ctx)

    assert gitea.assets == []
    assert ctx.release_id is not None


def test_release_stage_upload_failure_propagates(gitea, gitea_client, make_context, make_artifact) -> None:
    gitea.upload_status = 500
    ctx = make_context(artifacts=[make_artifact("tool.tar.gz")])

    with pytest.raises(RetriableError):
        ReleaseStage(lambda ctx: gitea_client, sleep=lambda _: None).run(ctx)

    assert len(gitea.calls_to("POST", "/assets")) == 3
    (release,) = gitea.releases["acme/tool"]
    assert release["draft"] is True
    assert gitea.calls_to("PATCH", "/releases/") == []


def test_release_stage_skipped_when_disabled(make_context) -> None:
    ctx = make_context({"release": {"repo": {"owner": "acme", "name": "tool"}, "disable": True}})
    stage = ReleaseStage(lambda ctx: pytest.fail("client should not be built"))

    assert stage.should_skip(ctx)
    assert stage.continuable is False


def test_release_stage_keeps_configured_draft(gitea, gitea_client, make_context, make_artifact) -> None:
    ctx = make_context(
        {"release": {"repo": {"owner": "acme", "name": "tool"}, "draft": True}},
        artifacts=[make_artifact("tool.tar.gz")],
    )

    ReleaseStage(lambda ctx: gitea_client, sleep=lambda _: None).run(ctx)

    (release,) = gitea.releases["acme/tool"]
    assert release["draft"] is True
    assert len(gitea.assets) == 1
    assert gitea.calls_to("PATCH", "/releases/") == []


def test_release_without_uploads_is_created_published(gitea, gitea_client, make_context) -> None:
    ctx = make_context()

    ReleaseStage(lambda ctx: gitea_client).run(ctx)

    (create,) = [call for call in gitea.calls if call["method"] == "POST" and call["url"].endswith("/releases")]
    assert create["json"]["draft"] is False
    assert gitea.releases["acme/tool"][0]["draft"] is False
