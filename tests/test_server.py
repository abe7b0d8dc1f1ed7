"""Tests for api.server against a live server on a free port."""

import http.client
import json
import logging
import threading
from typing import Iterator

import pytest
import requests

from revassign.api import make_server
from revassign.api.server import _content_length
from revassign.engine import ReviewerAssignmentEngine
from revassign.logging import ACCESS_LOGGER


@pytest.fixture
def server_address(engine: ReviewerAssignmentEngine) -> Iterator[tuple[str, int]]:
    server = make_server(engine, "127.0.0.1", 0)
    host, port = server.server_address[:2]
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield host, port
    server.shutdown()
    server.server_close()
    thread.join(timeout=5)


@pytest.fixture
def base_url(server_address: tuple[str, int]) -> str:
    host, port = server_address
    return f"http://{host}:{port}"


def _raw_post(address: tuple[str, int], path: str, content_length: str, body: bytes = b"") -> tuple[int, dict]:
    """POST with a hand-written Content-Length header."""
    conn = http.client.HTTPConnection(*address, timeout=5)
    try:
        conn.putrequest("POST", path)
        conn.putheader("Content-Type", "application/json")
        conn.putheader("Content-Length", content_length)
        conn.endheaders()
        if body:
            conn.send(body)
        resp = conn.getresponse()
        return resp.status, json.loads(resp.read())
    finally:
        conn.close()


class TestContentLength:
    """_content_length accepts only non-negative integers."""

    @pytest.mark.parametrize("value, expected", [(None, 0), ("", 0), ("0", 0), ("17", 17)])
    def test_valid(self, value: str | None, expected: int) -> None:
        """Missing or numeric headers give the body length."""
        assert _content_length(value) == expected

    @pytest.mark.parametrize("value", ["abc", "-5", "1.5"])
    def test_invalid(self, value: str) -> None:
        """Non-numeric and negative values are rejected."""
        assert _content_length(value) is None


class TestLiveServer:
    """Requests go through ApiHandler and dispatch()."""

    def test_health(self, base_url: str) -> None:
        """GET /health answers with a JSON body."""
        resp = requests.get(f"{base_url}/health", timeout=5)
        assert resp.status_code == 200
        assert resp.headers["Content-Type"] == "application/json"
        assert resp.json() == {"status": "healthy"}

    def test_pull_request_flow(self, base_url: str) -> None:
        """Team add, PR create, merge, and a refused reassign over HTTP."""
        team = {
            "team_name": "backend",
            "members": [
                {"user_id": "u1", "username": "Alice", "is_active": True},
                {"user_id": "u2", "username": "Bob", "is_active": True},
                {"user_id": "u3", "username": "Carol", "is_active": True},
                {"user_id": "u4", "username": "Dave", "is_active": True},
            ],
        }
        assert requests.post(f"{base_url}/team/add", json=team, timeout=5).status_code == 201

        resp = requests.post(
            f"{base_url}/pullRequest/create",
            json={"pull_request_id": "pr-1001", "pull_request_name": "Add search", "author_id": "u1"},
            timeout=5,
        )
        assert resp.status_code == 201
        assert resp.json()["pr"]["assigned_reviewers"] == ["u2", "u3"]

        resp = requests.post(f"{base_url}/pullRequest/merge", json={"pull_request_id": "pr-1001"}, timeout=5)
        assert resp.json()["pr"]["status"] == "MERGED"

        resp = requests.post(
            f"{base_url}/pullRequest/reassign",
            json={"pull_request_id": "pr-1001", "old_user_id": "u2"},
            timeout=5,
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "PR_MERGED"

        resp = requests.get(f"{base_url}/users/getReview", params={"user_id": "u2"}, timeout=5)
        assert [p["pull_request_id"] for p in resp.json()["pull_requests"]] == ["pr-1001"]

    def test_query_string_is_parsed(self, base_url: str) -> None:
        """team_name is read from the query string."""
        resp = requests.get(f"{base_url}/team/get", params={"team_name": "ghost"}, timeout=5)
        assert resp.status_code == 404

    def test_unsupported_method(self, base_url: str) -> None:
        """DELETE on a POST route is 405."""
        resp = requests.delete(f"{base_url}/team/add", timeout=5)
        assert resp.status_code == 405
        assert resp.json()["error"]["code"] == "METHOD_NOT_ALLOWED"

    def test_unknown_route(self, base_url: str) -> None:
        """Unknown paths are 404."""
        resp = requests.get(f"{base_url}/nope", timeout=5)
        assert resp.status_code == 404

    @pytest.mark.parametrize("content_length", ["abc", "-1"])
    def test_bad_content_length_is_400(self, server_address: tuple[str, int], content_length: str) -> None:
        """A malformed Content-Length gets the BAD_REQUEST envelope, not a dropped connection."""
        status, body = _raw_post(server_address, "/team/add", content_length)
        assert status == 400
        assert body == {"error": {"code": "BAD_REQUEST", "message": "invalid Content-Length"}}

    def test_access_log(self, base_url: str, caplog: pytest.LogCaptureFixture) -> None:
        """Each request writes one INFO line to the access logger."""
        with caplog.at_level(logging.INFO, logger=ACCESS_LOGGER):
            requests.get(f"{base_url}/health", timeout=5)
        lines = [r.getMessage() for r in caplog.records if r.name == ACCESS_LOGGER]
        assert any("GET /health" in line and "200" in line for line in lines)
