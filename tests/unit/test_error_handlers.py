"""
Unit tests for error handlers.

Tests the error response model and exception handlers to ensure
they produce correctly structured responses.
"""

import json

import pytest
from unittest.mock import MagicMock
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient
from pydantic import BaseModel

from errors.codes import ErrorCode, get_default_status_code
from errors.exceptions import AppException, invalid_request, resource_not_found, storage_unavailable
from errors.handlers import (
    ErrorResponse,
    get_request_id,
    handle_app_exception,
    handle_request_validation_error,
    handle_unexpected_exception,
    register_exception_handlers,
)


def make_request(request_id: str = "test-request-id", method: str = "GET") -> MagicMock:
    request = MagicMock(spec=Request)
    request.state.request_id = request_id
    request.url.path = "/api/test"
    request.method = method
    return request


class TestErrorCodes:
    """Tests for the error code catalog."""

    @pytest.mark.parametrize("code,status", [
        (ErrorCode.INVALID_REQUEST, 400),
        (ErrorCode.RESOURCE_NOT_FOUND, 404),
        (ErrorCode.STORAGE_UNAVAILABLE, 503),
        (ErrorCode.INTERNAL_ERROR, 500),
    ])
    def test_default_status_codes(self, code, status):
        assert get_default_status_code(code) == status

    def test_factories_use_matching_codes(self):
        assert invalid_request("x").error_code == ErrorCode.INVALID_REQUEST
        assert resource_not_found("x").status_code == 404
        assert storage_unavailable().status_code == 503

    def test_to_dict_omits_missing_details(self):
        assert invalid_request("Empty batch").to_dict() == {
            "error_code": "INVALID_REQUEST",
            "message": "Empty batch",
        }


class TestErrorResponse:
    """Tests for the ErrorResponse model."""

    def test_error_response_with_all_fields(self):
        response = ErrorResponse(
            error_code="STORAGE_UNAVAILABLE",
            message="Cannot append to the location log",
            details={"path": "App_Data/locations-20251001.log"},
            request_id="req-123",
        )

        assert response.error_code == "STORAGE_UNAVAILABLE"
        assert response.details == {"path": "App_Data/locations-20251001.log"}
        assert response.request_id == "req-123"

    def test_error_response_model_dump_excludes_none(self):
        response = ErrorResponse(
            error_code="INTERNAL_ERROR",
            message="An error occurred",
            request_id="req-789",
        )

        dumped = response.model_dump(exclude_none=True)
        assert "details" not in dumped
        assert dumped["request_id"] == "req-789"


class TestGetRequestId:
    """Tests for the get_request_id function."""

    def test_get_request_id_from_state(self):
        assert get_request_id(make_request("existing-request-id")) == "existing-request-id"

    def test_get_request_id_generates_uuid_when_not_set(self):
        request = MagicMock(spec=Request)
        del request.state.request_id

        result = get_request_id(request)

        assert len(result) == 36
        assert result.count("-") == 4


class TestHandleAppException:
    """Tests for the handle_app_exception handler."""

    @pytest.mark.asyncio
    async def test_handle_app_exception_includes_all_fields(self):
        exc = resource_not_found(
            message="No log file for today.",
            details={"path": "App_Data/locations-20251001.log"},
        )

        response = await handle_app_exception(make_request(method="GET"), exc)

        assert isinstance(response, JSONResponse)
        assert response.status_code == 404
        data = json.loads(response.body.decode("utf-8"))
        assert data == {
            "error_code": "RESOURCE_NOT_FOUND",
            "message": "No log file for today.",
            "details": {"path": "App_Data/locations-20251001.log"},
            "request_id": "test-request-id",
        }

    @pytest.mark.asyncio
    async def test_handle_app_exception_uses_correct_status_code(self):
        exc = AppException(
            error_code=ErrorCode.STORAGE_UNAVAILABLE,
            message="Disk full",
        )

        response = await handle_app_exception(make_request(), exc)

        assert response.status_code == 503


class TestHandleRequestValidationError:
    """Tests for mapping body validation errors to 400."""

    @pytest.mark.asyncio
    async def test_returns_invalid_request(self):
        exc = RequestValidationError([{"loc": ("body",), "msg": "Field required", "type": "missing"}])

        response = await handle_request_validation_error(make_request(method="POST"), exc)

        assert response.status_code == 400
        data = json.loads(response.body.decode("utf-8"))
        assert data["error_code"] == "INVALID_REQUEST"
        assert data["details"]["validation_errors"][0]["type"] == "missing"


class TestHandleUnexpectedException:
    """Tests for the handle_unexpected_exception handler."""

    @pytest.mark.asyncio
    async def test_handle_unexpected_exception_hides_internal_details(self):
        exc = RuntimeError("Permission denied: /srv/secret/App_Data")

        response = await handle_unexpected_exception(make_request(method="POST"), exc)

        assert response.status_code == 500
        data = json.loads(response.body.decode("utf-8"))
        assert "/srv/secret" not in data["message"]
        assert data["error_code"] == "INTERNAL_ERROR"
        assert "unexpected error" in data["message"].lower()
        assert data["request_id"] == "test-request-id"
        assert "details" not in data


class TestRegisterExceptionHandlers:
    """Tests for the register_exception_handlers function."""

    def test_register_exception_handlers_adds_handlers(self):
        mock_app = MagicMock()

        register_exception_handlers(mock_app)

        exception_types = [call[0][0] for call in mock_app.add_exception_handler.call_args_list]
        assert exception_types == [AppException, RequestValidationError, Exception]

    def test_handlers_apply_to_a_real_app(self):
        class Body(BaseModel):
            value: int

        app = FastAPI()
        register_exception_handlers(app)

        @app.post("/echo")
        async def echo(body: Body):
            return {"value": body.value}

        @app.get("/boom")
        async def boom():
            raise ValueError("internal detail")

        client = TestClient(app, raise_server_exceptions=False)

        bad_body = client.post("/echo", json={"value": "not-a-number"})
        assert bad_body.status_code == 400
        assert bad_body.json()["error_code"] == "INVALID_REQUEST"

        crash = client.get("/boom")
        assert crash.status_code == 500
        assert crash.json()["error_code"] == "INTERNAL_ERROR"
