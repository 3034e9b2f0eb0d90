"""Resolve a repository URL or owner/name shorthand into an identity."""

import re

from pydantic import ValidationError

from git_assure.models import RepositoryIdentity


_URL_PATTERN = re.compile(r"github\.com[/:]([^/\s]+)/([^/\s?#]+)")
_SHORTHAND_PATTERN = re.compile(r"^([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+)/?$")


class IdentityError(ValueError):
    """Raised when a repository reference cannot be parsed."""


def parse_repository(reference: str) -> RepositoryIdentity:
    """Parse ``https://github.com/o/r``, ``git@github.com:o/r.git`` or ``o/r``."""
    text = (reference or "").strip()
    match = _URL_PATTERN.search(text) or _SHORTHAND_PATTERN.match(text)
    if not match:
        raise IdentityError(f"Invalid GitHub repository reference: {reference!r}")

    owner, name = match.group(1), match.group(2)
    name = name.rstrip("/")
    if name.endswith(".git"):
        name = name[: -len(".git")]
    try:
        return RepositoryIdentity(owner=owner, name=name)
    except ValidationError as exc:
        raise IdentityError(f"Invalid GitHub repository reference: {reference!r}") from exc
