"""Command-line entry point for release publishing."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from dotenv import load_dotenv

from .artifact import ARTIFACT_TYPES, Artifact, Artifacts
from .client import build_client
from .config import load_config
from .context import Context, GitInfo
from .errors import ReleasePublisherError
from .pipeline import MemoizedErrors
from .stages import default_stages, lazy_client_factory, run_publish

logger = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s %(message)s",
    )
    if not args.no_dotenv:
        load_dotenv(Path.cwd() / ".env")

    try:
        if args.command == "publish":
            return _handle_publish(args)
        if args.command == "changelog":
            return _handle_changelog(args)
        if args.command == "stages":
            return _handle_stages(args)
    except MemoizedErrors as exc:
        _print_json({"status": "failed", "errors": [str(error) for error in exc.errors]})
        return 1
    except ReleasePublisherError as exc:
        logger.error("%s", exc)
        _print_json({"status": "failed", "errors": [str(exc)]})
        return 1

    parser.error(f"Unknown command '{args.command}'")
    return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="release-publisher", description="Publish releases to source-control hosts.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("--no-dotenv", action="store_true", help="Do not load ./.env before reading the token.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    publish = subparsers.add_parser("publish", help="Run the publishing pipeline.")
    _add_common_arguments(publish)
    publish.add_argument("--commit", default="")
    publish.add_argument("--notes-file")
    publish.add_argument(
        "--artifact",
        action="append",
        default=[],
        help=f"NAME=PATH[:TYPE] (repeatable); TYPE is one of {', '.join(sorted(ARTIFACT_TYPES))}.",
    )
    publish.add_argument("--fail-fast", action="store_true")
    publish.add_argument("--skip", action="append", default=[], help="Stage name to skip (repeatable).")
    publish.add_argument("--skip-publish", action="store_true")

    changelog = subparsers.add_parser("changelog", help="Print commits between two revisions.")
    _add_common_arguments(changelog)
    changelog.add_argument("--to", dest="to_rev")

    stages = subparsers.add_parser("stages", help="List the publishing stages and their failure policy.")
    stages.add_argument("--config", required=True)

    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", required=True)
    parser.add_argument("--tag", required=True)
    parser.add_argument("--previous-tag")


def _build_context(args: argparse.Namespace, **overrides: object) -> Context:
    config = load_config(args.config)
    git = GitInfo(
        current_tag=args.tag,
        commit=getattr(args, "commit", "") or "",
        previous_tag=args.previous_tag,
    )
    return Context(config=config, git=git, token=os.getenv(config.token_env) or None, **overrides)


def _handle_publish(args: argparse.Namespace) -> int:
    notes = Path(args.notes_file).read_text(encoding="utf-8") if args.notes_file else ""
    ctx = _build_context(
        args,
        artifacts=Artifacts(_parse_artifacts(args.artifact)),
        release_notes=notes,
        fail_fast=args.fail_fast,
        skip_publish=args.skip_publish,
        skip_stages=frozenset(args.skip),
    )
    report = run_publish(ctx, lazy_client_factory())
    _print_json(
        {
            "status": "ok" if report else "skipped",
            "release_id": ctx.release_id,
            "release_url": ctx.release_url,
            "stages": report.to_dict() if report else None,
        }
    )
    return 0


def _handle_changelog(args: argparse.Namespace) -> int:
    if not args.previous_tag:
        raise ReleasePublisherError("--previous-tag is required for changelog")
    ctx = _build_context(args)
    client = build_client(ctx)
    items = client.changelog(ctx.config.release.repo.to_repo(), args.previous_tag, args.to_rev or args.tag)
    _print_json(
        {
            "from": args.previous_tag,
            "to": args.to_rev or args.tag,
            "commits": [
                {
                    "sha": item.sha,
                    "message": item.message,
                    "author_name": item.author_name,
                    "author_email": item.author_email,
                    "author_username": item.author_username,
                }
                for item in items
            ],
        }
    )
    return 0


def _handle_stages(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    ctx = Context(config=config, git=GitInfo(current_tag=""))
    _print_json({"stages": [stage.describe() for stage in default_stages(ctx)]})
    return 0


def _parse_artifacts(values: Sequence[str]) -> List[Artifact]:
    artifacts: List[Artifact] = []
    for entry in values:
        if "=" not in entry:
            raise ReleasePublisherError(f"Artifact must be NAME=PATH[:TYPE] (got '{entry}')")
        name, raw = entry.split("=", 1)
        path, _, kind = raw.rpartition(":")
        if not path or kind not in ARTIFACT_TYPES:
            # colon is part of the path
            path, kind = raw, ""
        artifact_path = Path(path)
        if not artifact_path.is_file():
            raise ReleasePublisherError(f"Artifact file not found: {artifact_path}")
        artifacts.append(Artifact(name=name.strip(), path=artifact_path, type=kind or "archive"))
    return artifacts


def _print_json(payload: Mapping[str, object]) -> None:
    print(json.dumps(payload, indent=2, default=str))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
