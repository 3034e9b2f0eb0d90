"""GitHub Actions entry point.

Reads ``INPUT_*`` variables, runs the analysis, publishes step outputs and
optionally comments the report on the triggering pull request.
"""

import asyncio
import json
import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Optional

from git_assure.analyzer import analyze
from git_assure.config import Settings
from git_assure.fetcher import Found, GitHubFetcher
from git_assure.identity import IdentityError, parse_repository
from git_assure.models import AnalysisResult, RepositoryIdentity

logger = logging.getLogger(__name__)

COMMENT_TAG = "<!-- git-assure-comment -->"
COMMENT_HEADER = "## Git-Assure Report"


def get_input(name: str, env: Mapping[str, str]) -> str:
    """Read an action input the way the runner exposes it."""
    return env.get(f"INPUT_{name.replace(' ', '_').upper()}", "").strip()


def get_boolean_input(name: str, env: Mapping[str, str]) -> bool:
    return get_input(name, env).lower() in ("true", "yes", "1")


def resolve_target(repository: str, env: Mapping[str, str]) -> RepositoryIdentity:
    """URL, ``owner/repo``, or the workflow's own repository when empty."""
    return parse_repository(repository or env.get("GITHUB_REPOSITORY", ""))


def set_output(name: str, value: str, env: Mapping[str, str]) -> None:
    """Append a (possibly multi-line) step output to ``$GITHUB_OUTPUT``."""
    path = env.get("GITHUB_OUTPUT")
    if not path:
        logger.info("%s=%s", name, value)
        return
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    with open(path, "a", encoding="utf-8") as fh:
        fh.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")


def pull_request_number(env: Mapping[str, str]) -> Optional[int]:
    event_path = env.get("GITHUB_EVENT_PATH")
    if not event_path or not Path(event_path).is_file():
        return None
    payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    return (payload.get("pull_request") or {}).get("number")


def build_comment(result: AnalysisResult, today: Optional[datetime] = None) -> str:
    day = (today or datetime.now(timezone.utc)).strftime("%Y-%m-%d")
    return (
        f"{COMMENT_TAG}\n{COMMENT_HEADER}\n\n"
        f"Repository analyzed on: {day}\n\n"
        f"### Risk Rating: {result.rating} (Score: {result.score})\n\n"
        f"{result.markdown}\n\n"
        "---\n*This analysis was performed automatically by Git-Assure*"
    )


async def comment_on_pull_request(
    fetcher: GitHubFetcher,
    target: RepositoryIdentity,
    number: int,
    result: AnalysisResult,
    mode: str,
) -> None:
    """Create a comment, or update the tagged one in ``update-existing`` mode."""
    body = build_comment(result)
    owner, repo = target.owner, target.name

    if mode == "update-existing":
        listing = await fetcher.list_issue_comments(owner, repo, number)
        comments = listing.payload if isinstance(listing, Found) else None
        existing = next(
            (c for c in comments or [] if COMMENT_TAG in (c.get("body") or "")), None
        )
        if existing:
            outcome = await fetcher.update_issue_comment(owner, repo, existing["id"], body)
            if isinstance(outcome, Found):
                logger.info("Updated existing analysis comment on PR #%s", number)
            else:
                logger.warning("Failed to update PR comment: %s", outcome)
            return

    outcome = await fetcher.create_issue_comment(owner, repo, number, body)
    if isinstance(outcome, Found):
        logger.info("Created new analysis comment on PR #%s", number)
    else:
        logger.warning("Failed to comment on PR: %s", outcome)


async def run(env: Optional[Mapping[str, str]] = None) -> int:
    """Run the action; returns the process exit code."""
    env = os.environ if env is None else env
    settings = Settings()
    token = get_input("token", env) or None

    try:
        target = resolve_target(get_input("repository", env), env)
    except IdentityError as exc:
        logger.error("Analysis failed: %s", exc)
        return 1

    result = await analyze(target, token=token, settings=settings)

    set_output("risk-score", str(result.score), env)
    set_output("risk-rating", result.rating, env)
    set_output("summary", result.markdown, env)

    output_file = get_input("output-file", env)
    if output_file:
        Path(output_file).write_text(result.markdown, encoding="utf-8")
        logger.info("Analysis written to %s", output_file)

    logger.info("Analysis complete. Risk Score: %s (%s)", result.score, result.rating)
    if result.failed:
        logger.error("Analysis failed: %s", result.markdown)
        return 1

    if get_boolean_input("comment-on-pr", env) and token:
        number = pull_request_number(env)
        workflow_repo = env.get("GITHUB_REPOSITORY", "")
        if number is None or not workflow_repo:
            logger.warning("Could not determine pull request number.")
            return 0
        async with GitHubFetcher(token=token, base_url=settings.api_url) as fetcher:
            await comment_on_pull_request(
                fetcher,
                parse_repository(workflow_repo),
                number,
                result,
                get_input("comment-mode", env) or "create-new",
            )
    return 0


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    raise SystemExit(asyncio.run(run()))


if __name__ == "__main__":
    main()
