from __future__ import annotations

import logging

import pytest

from release_publisher.errors import MilestoneNotFoundError
from release_publisher.pipeline import run_pipeline
from release_publisher.stages import MilestoneStage

RELEASE = {"repo": {"owner": "acme", "name": "tool"}}


def test_closes_milestone_named_after_version(gitea, gitea_client, make_context) -> None:
    gitea.milestones["acme/tool"] = {"1.2.0": "open"}
    ctx = make_context({"release": RELEASE, "milestones": [{"close": True, "name_template": "{version}"}]})

    MilestoneStage(lambda ctx: gitea_client).run(ctx)

    assert gitea.milestones["acme/tool"]["1.2.0"] == "closed"


def test_closes_milestone_in_other_repo(gitea, gitea_client, make_context) -> None:
    gitea.milestones["acme/docs"] = {"v1.2.0": "open"}
    ctx = make_context({"milestones": [{"close": True, "repo": {"owner": "acme", "name": "docs"}}]})

    MilestoneStage(lambda ctx: gitea_client).run(ctx)

    assert gitea.milestones["acme/docs"]["v1.2.0"] == "closed"


def test_missing_milestone_only_warns(gitea_client, make_context, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING)
    ctx = make_context({"milestones": [{"close": True}]})

    MilestoneStage(lambda ctx: gitea_client).run(ctx)

    assert any("v1.2.0" in record.getMessage() for record in caplog.records)


def test_missing_milestone_fails_when_requested(gitea_client, make_context) -> None:
    ctx = make_context({"milestones": [{"close": True, "fail_on_error": True}]})

    with pytest.raises(MilestoneNotFoundError):
        MilestoneStage(lambda ctx: gitea_client).run(ctx)


def test_stage_skipped_without_milestones_to_close(make_context) -> None:
    stage = MilestoneStage(lambda ctx: pytest.fail("client should not be built"))

    report = run_pipeline([stage], make_context({"milestones": [{"close": False}]}))

    assert report.skipped == ["milestones"]
    assert stage.continuable is True
