from __future__ import annotations

import json
from unittest.mock import Mock, patch

import pytest
import requests

from ghdb.config import Identity
from ghdb.errors import (
    DecodeError,
    InvalidInputError,
    RequestTimeoutError,
    TransportError,
    UpstreamRejectedError,
)
from ghdb.github import GitHubClient, PullRequest, Repository


def _repo_record(i: int, owner: str = "octo") -> dict:
    return {
        "name": f"repo-{i}",
        "full_name": f"{owner}/repo-{i}",
        "owner": {"login": owner},
        "clone_url": f"https://github.com/{owner}/repo-{i}.git",
        "html_url": f"https://github.com/{owner}/repo-{i}",
        "description": None,
    }


def _pr_record(i: int, author: str = "alice") -> dict:
    return {
        "number": i,
        "title": f"Fix bug {i}",
        "user": {"login": author},
        "html_url": f"https://github.com/octo/app/pull/{i}",
        "draft": False,
        "repository_url": "https://api.github.com/repos/octo/app",
    }


def _response(body, status: int = 200) -> Mock:
    response = Mock()
    response.status_code = status
    response.json.return_value = body
    response.text = json.dumps(body)
    return response


def _repo_pages(*sizes: int) -> list[Mock]:
    pages = []
    offset = 0
    for size in sizes:
        pages.append(_response([_repo_record(offset + i) for i in range(size)]))
        offset += size
    return pages


def test_pagination_stops_on_short_page():
    client = GitHubClient()
    with patch.object(client.session, "get", side_effect=_repo_pages(100, 100, 37)) as mock_get:
        repos = client.list_repositories(Identity(name="octo"))

    assert mock_get.call_count == 3
    assert len(repos) == 237
    assert [r.name for r in repos] == [f"repo-{i}" for i in range(237)]
    pages = [call.kwargs["params"]["page"] for call in mock_get.call_args_list]
    assert pages == [1, 2, 3]
    assert all(call.kwargs["params"]["per_page"] == 100 for call in mock_get.call_args_list)


def test_pagination_fetches_trailing_empty_page():
    client = GitHubClient()
    with patch.object(client.session, "get", side_effect=_repo_pages(100, 100, 0)) as mock_get:
        repos = client.list_repositories(Identity(name="octo"))

    assert mock_get.call_count == 3
    assert len(repos) == 200


def test_pagination_discards_partial_results_on_error():
    client = GitHubClient()
    responses = _repo_pages(100) + [requests.ConnectionError("connection reset")]
    with patch.object(client.session, "get", side_effect=responses):
        with pytest.raises(TransportError):
            client.list_repositories(Identity(name="octo"))


def test_timeout_is_retryable_transport_error():
    client = GitHubClient(timeout=5)
    with patch.object(client.session, "get", side_effect=requests.Timeout("slow")) as mock_get:
        with pytest.raises(RequestTimeoutError) as exc_info:
            client.list_repositories(Identity(name="octo"))

    assert isinstance(exc_info.value, TransportError)
    assert exc_info.value.retryable is True
    assert mock_get.call_args.kwargs["timeout"] == 5


def test_invalid_json_is_decode_error():
    client = GitHubClient()
    response = _response(None)
    response.json.side_effect = ValueError("Expecting value")
    with patch.object(client.session, "get", return_value=response):
        with pytest.raises(DecodeError):
            client.list_repositories(Identity(name="octo"))


def test_unexpected_page_shape_is_decode_error():
    client = GitHubClient()
    with patch.object(client.session, "get", return_value=_response({"message": "hi"})):
        with pytest.raises(DecodeError):
            client.list_repositories(Identity(name="octo"))


def test_non_object_record_is_decode_error():
    client = GitHubClient()
    with patch.object(client.session, "get", return_value=_response([None])):
        with pytest.raises(DecodeError):
            client.list_repositories(Identity(name="octo"))

    with patch.object(client.session, "get", return_value=_response({"items": [42]})):
        with pytest.raises(DecodeError):
            client.list_open_pull_requests(Identity(name="alice"))


def test_list_repositories_uses_users_or_orgs_path():
    client = GitHubClient()
    with patch.object(client.session, "get", side_effect=_repo_pages(1) + _repo_pages(1)) as mock_get:
        client.list_repositories(Identity(name="alice"))
        client.list_repositories(Identity(name="acme", is_org=True))

    urls = [call.args[0] for call in mock_get.call_args_list]
    assert urls == [
        "https://api.github.com/users/alice/repos",
        "https://api.github.com/orgs/acme/repos",
    ]


def test_list_repositories_against_enterprise_host():
    client = GitHubClient()
    identity = Identity(name="team", is_org=True, base_url="https://ghe.example.com/api/v3")
    with patch.object(client.session, "get", side_effect=_repo_pages(0)) as mock_get:
        client.list_repositories(identity)

    assert mock_get.call_args.args[0] == "https://ghe.example.com/api/v3/orgs/team/repos"


def test_bearer_token_sent_on_every_page():
    client = GitHubClient()
    identity = Identity(name="octo", token="secret")
    with patch.object(client.session, "get", side_effect=_repo_pages(100, 5)) as mock_get:
        client.list_repositories(identity)

    for call in mock_get.call_args_list:
        assert call.kwargs["headers"] == {"Authorization": "Bearer secret"}


def test_no_authorization_header_without_token():
    client = GitHubClient()
    with patch.object(client.session, "get", side_effect=_repo_pages(0)) as mock_get:
        client.list_repositories(Identity(name="octo"))

    assert "Authorization" not in mock_get.call_args.kwargs["headers"]


def test_list_repositories_requires_name():
    client = GitHubClient()
    with patch.object(client.session, "get") as mock_get:
        with pytest.raises(InvalidInputError):
            client.list_repositories(Identity(name=""))

    mock_get.assert_not_called()


def test_pull_request_search_rejects_organizations_without_network():
    client = GitHubClient()
    with patch.object(client.session, "get") as mock_get:
        with pytest.raises(InvalidInputError):
            client.list_open_pull_requests(Identity(name="acme", is_org=True))

    mock_get.assert_not_called()


def test_list_open_pull_requests_query_and_decode():
    client = GitHubClient()
    body = {"total_count": 2, "items": [_pr_record(1), _pr_record(2)]}
    with patch.object(client.session, "get", return_value=_response(body)) as mock_get:
        prs = client.list_open_pull_requests(Identity(name="alice"))

    assert mock_get.call_args.args[0] == "https://api.github.com/search/issues"
    assert mock_get.call_args.kwargs["params"]["q"] == "state:open type:pr author:alice"
    assert [pr.number for pr in prs] == [1, 2]
    assert prs[0].author == "alice"
    assert prs[0].repository_name == "octo/app"


def test_search_rejection_carries_response_body():
    client = GitHubClient()
    body = {"message": "Validation Failed"}
    with patch.object(client.session, "get", return_value=_response(body, status=422)):
        with pytest.raises(UpstreamRejectedError) as exc_info:
            client.list_open_pull_requests(Identity(name="alice"))

    assert exc_info.value.status_code == 422
    assert "Validation Failed" in exc_info.value.body


def test_repository_name_from_repository_url():
    pr = PullRequest(
        number=1,
        title="t",
        author="a",
        html_url="https://github.com/octo/app/pull/1",
        repository_url="https://api.github.com/repos/octo/app/",
    )
    assert pr.repository_name == "octo/app"

    odd = PullRequest(number=1, title="t", author="a", html_url="u", repository_url="app")
    assert odd.repository_name == "app"


def test_repository_from_dict_keeps_optional_description():
    repo = Repository.from_dict({**_repo_record(1), "description": "A tool"})
    assert repo.full_name == "octo/repo-1"
    assert repo.description == "A tool"
