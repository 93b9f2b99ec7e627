"""
GitHub REST API client for ghdb.

Fetches repositories and open pull requests for configured users and
organizations. Every listing is walked page by page until a short page
comes back; there is no incremental sync and no retry.

Supports:
- Per-identity bearer tokens
- GitHub Enterprise base URLs
- Explicit per-request timeouts
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

import requests

from . import __version__
from .config import Identity
from .errors import (
    DecodeError,
    InvalidInputError,
    RequestTimeoutError,
    TransportError,
    UpstreamRejectedError,
)


DEFAULT_PER_PAGE = 100
DEFAULT_TIMEOUT = 30.0

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Repository:
    """Repository as listed by the users/orgs repos endpoints."""
    name: str
    owner: str
    clone_url: str
    html_url: str
    description: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Repository":
        """Parse a repository record. Raises KeyError/TypeError on bad shape."""
        if not isinstance(data, dict):
            raise TypeError(f"repository record must be an object, got {type(data).__name__}")
        description = data.get("description")
        return cls(
            name=_require_str(data, "name"),
            owner=_require_str(data["owner"], "login"),
            clone_url=_require_str(data, "clone_url"),
            html_url=_require_str(data, "html_url"),
            description=description if isinstance(description, str) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "full_name": self.full_name,
            "owner": {"login": self.owner},
            "clone_url": self.clone_url,
            "html_url": self.html_url,
            "description": self.description,
        }


@dataclass(frozen=True)
class PullRequest:
    """Open pull request as returned by the issue search endpoint."""
    number: int
    title: str
    author: str
    html_url: str
    repository_url: str
    draft: bool = False

    @property
    def repository_name(self) -> str:
        """owner/name taken from the last two segments of repository_url."""
        segments = self.repository_url.rstrip("/").split("/")
        if len(segments) < 2:
            return self.repository_url
        return f"{segments[-2]}/{segments[-1]}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PullRequest":
        """Parse a pull request record. Raises KeyError/TypeError on bad shape."""
        if not isinstance(data, dict):
            raise TypeError(f"pull request record must be an object, got {type(data).__name__}")
        number = data["number"]
        if not isinstance(number, int) or isinstance(number, bool):
            raise TypeError(f"'number' must be an integer, got {number!r}")
        return cls(
            number=number,
            title=_require_str(data, "title"),
            author=_require_str(data["user"], "login"),
            html_url=_require_str(data, "html_url"),
            repository_url=_require_str(data, "repository_url"),
            draft=bool(data.get("draft", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "title": self.title,
            "user": {"login": self.author},
            "html_url": self.html_url,
            "draft": self.draft,
            "repository_url": self.repository_url,
        }


def _require_str(data: Any, key: str) -> str:
    if not isinstance(data, dict):
        raise TypeError(f"expected an object holding '{key}', got {type(data).__name__}")
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"'{key}' must be a string, got {value!r}")
    return value


def decode_repositories(body: Any) -> list[Repository]:
    """Decode one page of the repos listing (a JSON array)."""
    if not isinstance(body, list):
        raise DecodeError(f"expected a list of repositories, got {type(body).__name__}")
    try:
        return [Repository.from_dict(item) for item in body]
    except (KeyError, TypeError) as e:
        raise DecodeError(f"malformed repository record: {e}") from e


def decode_search_results(body: Any) -> list[PullRequest]:
    """Decode one page of issue search results ({"items": [...]})."""
    if not isinstance(body, dict) or not isinstance(body.get("items"), list):
        raise DecodeError("expected a search result object with an 'items' list")
    try:
        return [PullRequest.from_dict(item) for item in body["items"]]
    except (KeyError, TypeError) as e:
        raise DecodeError(f"malformed pull request record: {e}") from e


class GitHubClient:
    """GitHub REST API client with exhaustive page walking."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, session: requests.Session | None = None):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["Accept"] = "application/vnd.github+json"
        self.session.headers["User-Agent"] = f"ghdb/{__version__}"

    def _request(self, url: str, params: dict[str, Any], token: str | None) -> requests.Response:
        """GET a single page, mapping failures onto ghdb errors."""
        headers = {"Authorization": f"Bearer {token}"} if token else {}

        try:
            response = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.Timeout as e:
            raise RequestTimeoutError(f"Request timed out after {self.timeout}s: {url}") from e
        except requests.RequestException as e:
            raise TransportError(f"Request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise UpstreamRejectedError(
                f"GitHub API error: {response.status_code} for {url}",
                response.status_code,
                response.text,
            )

        return response

    def _paginate(
        self,
        url: str,
        decode: Callable[[Any], list[T]],
        params: dict[str, Any] | None = None,
        token: str | None = None,
        page_size: int = DEFAULT_PER_PAGE,
    ) -> list[T]:
        """
        Fetch every page of a listing and concatenate the decoded items.

        Pages are 1-indexed. Walking stops at the first page holding fewer
        than page_size items, so a listing that is an exact multiple of
        page_size ends with one empty request.
        """
        params = dict(params or {})
        params["per_page"] = page_size
        page = 1
        results: list[T] = []

        while True:
            response = self._request(url, {**params, "page": page}, token)

            try:
                body = response.json()
            except ValueError as e:
                raise DecodeError(f"Invalid JSON from {url} (page {page}): {e}") from e

            items = decode(body)
            logger.debug("Fetched %s page %d: %d items", url, page, len(items))
            results.extend(items)

            if len(items) < page_size:
                break

            page += 1

        return results

    def list_repositories(self, identity: Identity) -> list[Repository]:
        """
        List every repository owned by a user or organization.

        Args:
            identity: User or org to list; is_org picks the orgs/ endpoint

        Returns:
            List of Repository objects in API order
        """
        if not identity.name:
            raise InvalidInputError("identity name is required to list repositories")

        prefix = "orgs" if identity.is_org else "users"
        url = f"{identity.base_url}/{prefix}/{identity.name}/repos"

        repos = self._paginate(url, decode_repositories, token=identity.token)
        logger.info("Listed %d repositories for %s", len(repos), identity)
        return repos

    def list_open_pull_requests(self, identity: Identity) -> list[PullRequest]:
        """
        List open pull requests authored by a user.

        Organizations are not supported by the author: search qualifier and
        are rejected before any request is made.
        """
        if not identity.name:
            raise InvalidInputError("identity name is required to search pull requests")
        if identity.is_org:
            raise InvalidInputError(
                f"pull request search is only supported for users, not org {identity.name}"
            )

        url = f"{identity.base_url}/search/issues"
        params = {"q": f"state:open type:pr author:{identity.name}"}

        prs = self._paginate(url, decode_search_results, params=params, token=identity.token)
        logger.info("Found %d open pull requests for %s", len(prs), identity)
        return prs

    def close(self) -> None:
        self.session.close()
