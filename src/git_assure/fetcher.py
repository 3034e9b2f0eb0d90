"""HTTP access to GitHub and third-party services.

Every request resolves to one of three outcomes: :class:`Found` with the
decoded payload, :data:`ABSENT` for a 404, or :class:`FetchError` for any
other failure. Nothing here raises on HTTP status codes.
"""

import logging
from typing import Any, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class Found(BaseModel):
    """The resource exists; ``payload`` is its decoded JSON body (or None for 204)."""

    model_config = ConfigDict(frozen=True)

    payload: Any = None
    status: int = 200


class Absent(BaseModel):
    """The resource does not exist (404)."""

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "not found"


class FetchError(BaseModel):
    """Any non-2xx, non-404 response, or a transport failure (status 0)."""

    model_config = ConfigDict(frozen=True)

    status: int
    message: str

    def __str__(self) -> str:
        return f"status {self.status}: {self.message}"


ABSENT = Absent()

FetchResult = Union[Found, Absent, FetchError]


class ResourceGateway:
    """Async JSON accessor that normalizes responses into fetch outcomes."""

    def __init__(
        self,
        base_url: str = "",
        headers: Optional[dict[str, str]] = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url
        self._headers = dict(headers or {})
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    # ── HTTP plumbing ─────────────────────────────────────────────────────

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    async def _client_instance(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=self._timeout,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ResourceGateway":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def request(self, method: str, path: str, **kwargs: Any) -> FetchResult:
        """Issue a request and classify its outcome."""
        client = await self._client_instance()
        try:
            resp = await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.debug("%s %s failed: %s", method, path, exc)
            return FetchError(status=0, message=str(exc) or type(exc).__name__)

        logger.debug("%s %s -> %s", method, path, resp.status_code)
        if resp.status_code == 404:
            return ABSENT
        if not resp.is_success:
            return FetchError(status=resp.status_code, message=self._error_message(resp))
        if resp.status_code == 204 or not resp.content:
            return Found(payload=None, status=resp.status_code)
        try:
            return Found(payload=resp.json(), status=resp.status_code)
        except ValueError:
            return Found(payload=resp.text, status=resp.status_code)

    async def fetch(self, path: str, **kwargs: Any) -> FetchResult:
        """GET ``path`` (relative to the base URL, or absolute)."""
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, json: Any, **kwargs: Any) -> FetchResult:
        return await self.request("POST", path, json=json, **kwargs)

    async def patch(self, path: str, json: Any, **kwargs: Any) -> FetchResult:
        return await self.request("PATCH", path, json=json, **kwargs)

    def _error_message(self, resp: httpx.Response) -> str:
        return resp.reason_phrase or f"HTTP {resp.status_code}"


class GitHubFetcher(ResourceGateway):
    """Resource gateway bound to the GitHub REST API."""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
    ) -> None:
        self.token = token
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        super().__init__(base_url=base_url, headers=headers, timeout=timeout)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def _error_message(self, resp: httpx.Response) -> str:
        if resp.status_code == 403 and "rate limit" in resp.text.lower():
            remaining = resp.headers.get("x-ratelimit-remaining", "0")
            if self.is_authenticated:
                hint = (
                    f"Authenticated rate limit hit (remaining: {remaining}). "
                    "Wait a few minutes and retry."
                )
            else:
                hint = (
                    "Running unauthenticated (60 req/hour). "
                    "Set GITHUB_TOKEN to get 5 000 req/hour."
                )
            return f"GitHub API rate limit exceeded. {hint}"
        return super()._error_message(resp)

    # ── Repository resources ──────────────────────────────────────────────

    async def fetch_repo_info(self, owner: str, repo: str) -> FetchResult:
        return await self.fetch(f"/repos/{owner}/{repo}")

    async def fetch_contents(self, owner: str, repo: str, path: str) -> FetchResult:
        return await self.fetch(f"/repos/{owner}/{repo}/contents/{path}")

    async def fetch_contributors(self, owner: str, repo: str) -> FetchResult:
        return await self.fetch(f"/repos/{owner}/{repo}/contributors")

    async def fetch_user(self, login: str) -> FetchResult:
        return await self.fetch(f"/users/{login}")

    async def fetch_commits(self, owner: str, repo: str, per_page: int = 100) -> FetchResult:
        return await self.fetch(
            f"/repos/{owner}/{repo}/commits", params={"per_page": str(per_page)}
        )

    async def fetch_releases(self, owner: str, repo: str) -> FetchResult:
        return await self.fetch(f"/repos/{owner}/{repo}/releases")

    async def fetch_open_pulls(self, owner: str, repo: str) -> FetchResult:
        return await self.fetch(
            f"/repos/{owner}/{repo}/pulls",
            params={"state": "open", "per_page": "100"},
        )

    async def fetch_issues(
        self,
        owner: str,
        repo: str,
        state: str,
        sort: str,
        direction: str,
        per_page: int = 100,
    ) -> FetchResult:
        """List issues (the GitHub endpoint also returns pull requests)."""
        return await self.fetch(
            f"/repos/{owner}/{repo}/issues",
            params={
                "state": state,
                "sort": sort,
                "direction": direction,
                "per_page": str(per_page),
            },
        )

    # ── Security ──────────────────────────────────────────────────────────

    async def vulnerability_alerts_enabled(self, owner: str, repo: str) -> bool:
        """True when the repository answers 204 on the vulnerability-alerts probe."""
        result = await self.fetch(f"/repos/{owner}/{repo}/vulnerability-alerts")
        return isinstance(result, Found) and result.status == 204

    async def fetch_dependabot_alerts(self, owner: str, repo: str) -> FetchResult:
        return await self.fetch(
            f"/repos/{owner}/{repo}/dependabot/alerts",
            params={"state": "open", "per_page": "100"},
        )

    # ── Issue comments ────────────────────────────────────────────────────

    async def list_issue_comments(self, owner: str, repo: str, number: int) -> FetchResult:
        return await self.fetch(
            f"/repos/{owner}/{repo}/issues/{number}/comments",
            params={"per_page": "100"},
        )

    async def create_issue_comment(
        self, owner: str, repo: str, number: int, body: str
    ) -> FetchResult:
        return await self.post(
            f"/repos/{owner}/{repo}/issues/{number}/comments", json={"body": body}
        )

    async def update_issue_comment(
        self, owner: str, repo: str, comment_id: int, body: str
    ) -> FetchResult:
        return await self.patch(
            f"/repos/{owner}/{repo}/issues/comments/{comment_id}", json={"body": body}
        )
