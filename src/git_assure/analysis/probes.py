"""Existence Probe Batch — reduce named sets of path probes to booleans."""

import asyncio
import logging
from typing import Any, Mapping, Sequence

from git_assure.fetcher import FetchError, Found, GitHubFetcher
from git_assure.models import ExistenceFlags, RepositoryIdentity

logger = logging.getLogger(__name__)


# Category → candidate paths; a category holds when any candidate exists.
DEFAULT_CANDIDATES: dict[str, list[str]] = {
    "has_tests": ["tests", "test", "__tests__", "spec"],
    "has_ci": [
        ".github/workflows",
        ".travis.yml",
        ".gitlab-ci.yml",
        "azure-pipelines.yml",
        "Jenkinsfile",
        ".circleci/config.yml",
    ],
    "has_docs": ["docs", "documentation", "wiki"],
    "has_lint_config": [
        ".eslintrc",
        ".eslintrc.js",
        ".eslintrc.json",
        ".prettierrc",
        ".prettierrc.js",
        ".prettierrc.json",
        ".stylelintrc",
        ".pylintrc",
        "tslint.json",
        ".rubocop.yml",
    ],
    "has_contributing": ["CONTRIBUTING.md"],
    "has_security_policy": ["SECURITY.md", "SECURITY.txt"],
    "has_readme": ["README.md"],
    "has_dependency_manifest": [
        "package.json",
        "package-lock.json",
        "requirements.txt",
        "Gemfile",
        "build.gradle",
        "pom.xml",
    ],
}


class ProbeOutcome:
    """Category flags plus the payload of every candidate that was found."""

    def __init__(self, flags: dict[str, bool], payloads: dict[str, Any]) -> None:
        self.flags = flags
        self.payloads = payloads

    def existence_flags(self) -> ExistenceFlags:
        known = set(ExistenceFlags.model_fields)
        return ExistenceFlags(**{k: v for k, v in self.flags.items() if k in known})


async def run_existence_probes(
    fetcher: GitHubFetcher,
    identity: RepositoryIdentity,
    candidates: Mapping[str, Sequence[str]] = DEFAULT_CANDIDATES,
) -> ProbeOutcome:
    """Probe every candidate path concurrently and OR the results per category."""
    paths = list(dict.fromkeys(p for group in candidates.values() for p in group))
    results = await asyncio.gather(
        *(fetcher.fetch_contents(identity.owner, identity.name, p) for p in paths)
    )

    payloads: dict[str, Any] = {}
    for path, result in zip(paths, results):
        if isinstance(result, Found):
            payloads[path] = result.payload
        elif isinstance(result, FetchError):
            logger.warning(
                "Probe for %s in %s failed (%s): %s",
                path, identity.slug, result.status, result.message,
            )

    flags = {
        category: any(p in payloads for p in group)
        for category, group in candidates.items()
    }
    return ProbeOutcome(flags=flags, payloads=payloads)
