"""
Unit tests for the error envelope produced by the exception handlers.
"""

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel

from marketplace_service.app.middleware.error import setup_marketplace_error_handling


class Payload(BaseModel):
    quantity: int


@pytest.fixture
def error_client() -> TestClient:
    app = FastAPI()
    setup_marketplace_error_handling(app)

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database exploded")

    @app.get("/bad-value")
    async def bad_value():
        raise ValueError("Quantity must be positive")

    @app.get("/conflict")
    async def conflict():
        raise HTTPException(status_code=409, detail={"product_id": 3, "available": 1})

    @app.post("/payload")
    async def payload(body: Payload):
        return body

    return TestClient(app, raise_server_exceptions=False)


def test_unhandled_exception_becomes_500_envelope(error_client):
    response = error_client.get("/boom")

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "An internal server error occurred"
    assert body["error"]["type"] == "internal_server_error"
    assert body["error"]["exception"] == "RuntimeError: database exploded"


def test_value_error_is_a_bad_request(error_client):
    response = error_client.get("/bad-value")

    assert response.status_code == 400
    assert response.json()["message"] == "Quantity must be positive"
    assert response.json()["error"]["type"] == "value_error"


def test_structured_http_detail_is_kept(error_client):
    response = error_client.get("/conflict")

    assert response.status_code == 409
    body = response.json()
    assert body["message"] == "Request failed"
    assert body["error"]["details"] == {"detail": {"product_id": 3, "available": 1}}


def test_validation_errors_list_fields(error_client):
    response = error_client.post("/payload", json={"quantity": "many"})

    assert response.status_code == 422
    errors = response.json()["error"]["details"]["validation_errors"]
    assert errors[0]["field"] == "body.quantity"
    assert response.json()["error"]["path"] == "/payload"
    assert response.json()["error"]["method"] == "POST"
