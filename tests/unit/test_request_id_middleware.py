"""
Unit tests for request ID middleware.

Tests the RequestIDMiddleware to ensure it correctly generates,
extracts, and propagates request IDs for correlation.
"""

import uuid

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from errors.exceptions import resource_not_found
from errors.handlers import register_exception_handlers
from middleware.request_id import (
    RequestIDMiddleware,
    request_id_var,
    REQUEST_ID_HEADER,
)


class TestRequestIDMiddleware:
    """Tests for the RequestIDMiddleware class."""

    @pytest.fixture
    def client(self):
        """Create a test client for an app with the middleware."""
        app = FastAPI()
        register_exception_handlers(app)
        app.add_middleware(RequestIDMiddleware)

        @app.get("/test")
        async def test_endpoint(request: Request):
            return {
                "request_id_from_state": request.state.request_id,
                "request_id_from_context": request_id_var.get(),
            }

        @app.get("/missing")
        async def missing_endpoint():
            raise resource_not_found("No log file for today.")

        return TestClient(app)

    def test_generates_request_id_when_not_provided(self, client):
        response = client.get("/test")

        request_id = response.headers[REQUEST_ID_HEADER]
        assert str(uuid.UUID(request_id)) == request_id

    def test_uses_existing_request_id_from_header(self, client):
        response = client.get("/test", headers={REQUEST_ID_HEADER: "device-req-1"})

        assert response.headers[REQUEST_ID_HEADER] == "device-req-1"
        assert response.json() == {
            "request_id_from_state": "device-req-1",
            "request_id_from_context": "device-req-1",
        }

    def test_empty_request_id_header_generates_new_id(self, client):
        response = client.get("/test", headers={REQUEST_ID_HEADER: ""})

        assert len(response.headers[REQUEST_ID_HEADER]) == 36

    def test_different_requests_get_different_ids(self, client):
        first = client.get("/test").headers[REQUEST_ID_HEADER]
        second = client.get("/test").headers[REQUEST_ID_HEADER]

        assert first != second

    def test_error_body_carries_request_id(self, client):
        response = client.get("/missing", headers={REQUEST_ID_HEADER: "trace-404"})

        assert response.status_code == 404
        assert response.json()["request_id"] == "trace-404"
        assert response.headers[REQUEST_ID_HEADER] == "trace-404"

    def test_context_variable_reset_after_request(self, client):
        client.get("/test", headers={REQUEST_ID_HEADER: "first-request-id"})

        assert request_id_var.get() == ""
