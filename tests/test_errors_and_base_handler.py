from __future__ import annotations

import json

import pytest
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST, METHOD_NOT_FOUND

from linear_mcp.errors import (
    AuthError,
    OperationError,
    ToolExecutionError,
    UnknownToolError,
    ValidationError,
    to_mcp_error,
)
from linear_mcp.handlers.base import BaseHandler


def test_handle_error_passes_typed_errors_through(auth, mock_client) -> None:
    handler = BaseHandler(auth, mock_client)
    original = ValidationError("Missing required parameter: id")

    with pytest.raises(ValidationError) as excinfo:
        handler.handle_error(original, "delete issue")

    assert excinfo.value is original
    assert str(excinfo.value) == "Missing required parameter: id"


def test_handle_error_wraps_untyped_errors(auth, mock_client) -> None:
    handler = BaseHandler(auth, mock_client)
    cause = RuntimeError("boom")

    with pytest.raises(ToolExecutionError) as excinfo:
        handler.handle_error(cause, "create issue")

    assert str(excinfo.value) == "Failed to create issue: boom"
    assert excinfo.value.__cause__ is cause


def test_handle_error_wraps_operation_errors_with_action(auth, mock_client) -> None:
    handler = BaseHandler(auth, mock_client)

    with pytest.raises(ToolExecutionError, match="^Failed to search issues: GraphQL operation failed: x$"):
        handler.handle_error(OperationError("GraphQL operation failed: x"), "search issues")


def test_handle_error_without_message_uses_uniform_text(auth, mock_client) -> None:
    handler = BaseHandler(auth, mock_client)

    with pytest.raises(ToolExecutionError, match="^Failed to get teams: Unknown error$"):
        handler.handle_error(Exception(), "get teams")


def test_validate_required_params_names_first_missing_key(auth, mock_client) -> None:
    handler = BaseHandler(auth, mock_client)

    with pytest.raises(ValidationError, match="description"):
        handler.validate_required_params({"title": "x", "description": None}, ["title", "description", "teamId"])

    handler.validate_required_params({"title": "x", "description": "", "teamId": "t"}, ["title", "description", "teamId"])


def test_verify_auth_requires_authentication_and_client(auth, unauthenticated_auth, mock_client) -> None:
    with pytest.raises(AuthError):
        BaseHandler(unauthenticated_auth, mock_client).verify_auth()
    with pytest.raises(AuthError):
        BaseHandler(auth, None).verify_auth()

    assert BaseHandler(auth, mock_client).verify_auth() is mock_client


def test_response_envelopes(auth) -> None:
    handler = BaseHandler(auth)

    text = handler.create_response("hello")
    assert text.content == [{"type": "text", "text": "hello"}]
    assert text.text == "hello"

    data = {"issues": {"nodes": [{"id": "1"}]}}
    payload = handler.create_json_response(data)
    assert payload.text == json.dumps(data, indent=2)
    assert json.loads(payload.text) == data

    content = payload.to_content()
    assert len(content) == 1
    assert content[0].type == "text"
    assert content[0].text == payload.text


@pytest.mark.parametrize(
    "error, code",
    [
        (ValidationError("bad"), INVALID_PARAMS),
        (AuthError("no"), INVALID_REQUEST),
        (UnknownToolError("linear_nope"), METHOD_NOT_FOUND),
        (OperationError("down"), INTERNAL_ERROR),
        (ToolExecutionError("Failed to x: y"), INTERNAL_ERROR),
    ],
)
def test_to_mcp_error_maps_codes(error, code) -> None:
    mcp_error = to_mcp_error(error)
    assert mcp_error.error.code == code
    assert mcp_error.error.message == str(error)
