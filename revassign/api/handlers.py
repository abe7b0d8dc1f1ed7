"""Route HTTP requests to the assignment engine.

dispatch() is transport-agnostic: it takes method, path, query and raw body
and returns (status, json_body), so the whole API can be exercised without a
socket. Engine errors are mapped to their HTTP status and the JSON error
envelope {"error": {"code": ..., "message": ...}}.
"""

import json
import logging
from http import HTTPStatus
from typing import Any, Callable, Dict, List, Tuple

from pydantic import ValidationError

from revassign.api.schemas import (
    CreatePullRequestRequest,
    DeactivateTeamRequest,
    MergePullRequestRequest,
    ReassignReviewerRequest,
    SetIsActiveRequest,
)
from revassign.engine import ReviewerAssignmentEngine
from revassign.errors import AssignmentError, ErrorCode, StorageError
from revassign.models import Team

LOG = logging.getLogger("revassign.api.handlers")

Response = Tuple[int, Dict[str, Any]]
Query = Dict[str, List[str]]
Handler = Callable[[ReviewerAssignmentEngine, Query, bytes], Response]

STATUS_BY_CODE = {
    ErrorCode.TEAM_EXISTS: HTTPStatus.BAD_REQUEST,
    ErrorCode.NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorCode.PR_EXISTS: HTTPStatus.CONFLICT,
    ErrorCode.PR_MERGED: HTTPStatus.CONFLICT,
    ErrorCode.NOT_ASSIGNED: HTTPStatus.CONFLICT,
    ErrorCode.NO_CANDIDATE: HTTPStatus.CONFLICT,
    ErrorCode.BAD_REQUEST: HTTPStatus.BAD_REQUEST,
    ErrorCode.METHOD_NOT_ALLOWED: HTTPStatus.METHOD_NOT_ALLOWED,
    ErrorCode.INTERNAL_ERROR: HTTPStatus.INTERNAL_SERVER_ERROR,
}


class BadRequest(Exception):
    """Request is missing a field or is not valid JSON."""

    pass


def error_response(code: ErrorCode, message: str) -> Response:
    """Build the JSON error envelope with the status mapped from code."""
    status = STATUS_BY_CODE.get(code, HTTPStatus.INTERNAL_SERVER_ERROR)
    return int(status), {"error": {"code": code.value, "message": message}}


def _parse_json(body: bytes) -> Any:
    if not body:
        raise BadRequest("request body is required")
    try:
        return json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise BadRequest(f"invalid JSON: {e}") from e


def _query_param(query: Query, name: str) -> str:
    value = (query.get(name) or [""])[0].strip()
    if not value:
        raise BadRequest(f"{name} is required")
    return value


def _validation_message(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "body"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


# --- route handlers ---


def team_add(engine: ReviewerAssignmentEngine, query: Query, body: bytes) -> Response:
    team = engine.add_team(Team.model_validate(_parse_json(body)))
    return int(HTTPStatus.CREATED), {"team": team.model_dump(mode="json")}


def team_get(engine: ReviewerAssignmentEngine, query: Query, body: bytes) -> Response:
    team = engine.get_team(_query_param(query, "team_name"))
    return int(HTTPStatus.OK), team.model_dump(mode="json")


def team_deactivate(engine: ReviewerAssignmentEngine, query: Query, body: bytes) -> Response:
    req = DeactivateTeamRequest.model_validate(_parse_json(body))
    result = engine.deactivate_team(req.team_name)
    return int(HTTPStatus.OK), result.model_dump(mode="json")


def users_set_is_active(engine: ReviewerAssignmentEngine, query: Query, body: bytes) -> Response:
    req = SetIsActiveRequest.model_validate(_parse_json(body))
    user = engine.set_user_active(req.user_id, req.is_active)
    return int(HTTPStatus.OK), {"user": user.model_dump(mode="json")}


def users_get_review(engine: ReviewerAssignmentEngine, query: Query, body: bytes) -> Response:
    user_id = _query_param(query, "user_id")
    prs = engine.get_user_reviews(user_id)
    return int(HTTPStatus.OK), {
        "user_id": user_id,
        "pull_requests": [pr.model_dump(mode="json") for pr in prs],
    }


def pull_request_create(engine: ReviewerAssignmentEngine, query: Query, body: bytes) -> Response:
    req = CreatePullRequestRequest.model_validate(_parse_json(body))
    pr = engine.create_pull_request(req.pull_request_id, req.pull_request_name, req.author_id)
    return int(HTTPStatus.CREATED), {"pr": pr.to_dict()}


def pull_request_merge(engine: ReviewerAssignmentEngine, query: Query, body: bytes) -> Response:
    req = MergePullRequestRequest.model_validate(_parse_json(body))
    pr = engine.merge_pull_request(req.pull_request_id)
    return int(HTTPStatus.OK), {"pr": pr.to_dict()}


def pull_request_reassign(engine: ReviewerAssignmentEngine, query: Query, body: bytes) -> Response:
    req = ReassignReviewerRequest.model_validate(_parse_json(body))
    result = engine.reassign_reviewer(req.pull_request_id, req.old_user_id)
    return int(HTTPStatus.OK), {"pr": result.pr.to_dict(), "replaced_by": result.replaced_by}


def health(engine: ReviewerAssignmentEngine, query: Query, body: bytes) -> Response:
    payload = engine.health()
    if payload.get("status") != "healthy":
        return int(HTTPStatus.SERVICE_UNAVAILABLE), payload
    return int(HTTPStatus.OK), payload


def stats(engine: ReviewerAssignmentEngine, query: Query, body: bytes) -> Response:
    return int(HTTPStatus.OK), engine.stats().model_dump(mode="json")


ROUTES: Dict[str, Tuple[str, Handler]] = {
    "/team/add": ("POST", team_add),
    "/team/get": ("GET", team_get),
    "/team/deactivate": ("POST", team_deactivate),
    "/users/setIsActive": ("POST", users_set_is_active),
    "/users/getReview": ("GET", users_get_review),
    "/pullRequest/create": ("POST", pull_request_create),
    "/pullRequest/merge": ("POST", pull_request_merge),
    "/pullRequest/reassign": ("POST", pull_request_reassign),
    "/health": ("GET", health),
    "/stats": ("GET", stats),
}


def dispatch(
    engine: ReviewerAssignmentEngine,
    method: str,
    path: str,
    query: Query | None = None,
    body: bytes = b"",
) -> Response:
    """Run the handler for (method, path) and map failures to error responses."""
    route = ROUTES.get(path)
    if route is None:
        return error_response(ErrorCode.NOT_FOUND, f"no route for {path}")
    allowed, handler = route
    if method.upper() != allowed:
        return error_response(ErrorCode.METHOD_NOT_ALLOWED, f"{method} not allowed on {path}")
    try:
        return handler(engine, query or {}, body)
    except BadRequest as e:
        return error_response(ErrorCode.BAD_REQUEST, str(e))
    except ValidationError as e:
        return error_response(ErrorCode.BAD_REQUEST, _validation_message(e))
    except AssignmentError as e:
        return error_response(e.code, e.message)
    except StorageError as e:
        LOG.exception("Storage failure on %s %s: %s", method, path, e)
        return error_response(ErrorCode.INTERNAL_ERROR, "storage error")
