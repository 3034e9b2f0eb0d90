"""Tests for repository identity parsing."""

import pytest

from git_assure.identity import IdentityError, parse_repository
from git_assure.models import RepositoryIdentity


class TestParseRepository:
    @pytest.mark.parametrize(
        "reference",
        [
            "owner/repo",
            "https://github.com/owner/repo",
            "https://github.com/owner/repo.git",
            "https://github.com/owner/repo/",
            "http://www.github.com/owner/repo/tree/main/src",
            "github.com/owner/repo",
            "git@github.com:owner/repo.git",
            "  owner/repo  ",
        ],
    )
    def test_equivalent_forms_yield_same_identity(self, reference):
        assert parse_repository(reference) == RepositoryIdentity(owner="owner", name="repo")

    def test_strips_git_suffix_from_shorthand(self):
        assert parse_repository("owner/repo.git").name == "repo"

    def test_keeps_dots_inside_name(self):
        assert parse_repository("vercel/next.js").name == "next.js"

    @pytest.mark.parametrize(
        "reference",
        ["", "not-a-github-url", "owner/", "/repo", "https://gitlab.com/owner", "a/b/c"],
    )
    def test_rejects_unparsable_references(self, reference):
        with pytest.raises(IdentityError):
            parse_repository(reference)

    def test_identity_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_repository("nope")

    def test_slug(self):
        assert parse_repository("https://github.com/a/b").slug == "a/b"
