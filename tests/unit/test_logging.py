"""
Unit tests for access logging middleware.
"""

import json
import logging

import pytest

from originserver.http.request import HTTPRequest
from originserver.http.response import HTTPResponse, ok, not_found
from originserver.middleware import LoggingMiddleware, MiddlewarePipeline, Middleware, RequestLog


def make_request() -> HTTPRequest:
    return HTTPRequest(method="GET", path="notes.txt", client_address=("10.0.0.5", 40000))


class TestRequestLog:

    def test_create(self):
        entry = RequestLog.create("GET", "notes.txt", ("10.0.0.5", 40000), ok(b"12345"), 1.5)

        assert entry.client_ip == "10.0.0.5"
        assert entry.client_port == 40000
        assert entry.status_code == 200
        assert entry.content_length == 5

    def test_to_text(self):
        entry = RequestLog("GET", "notes.txt", "10.0.0.5", 40000, 404, 0, 1.234, "ts")
        assert entry.to_text() == '10.0.0.5:40000 - [ts] "GET notes.txt" 404 0 1.23ms'

    def test_to_dict_rounds_duration(self):
        entry = RequestLog("GET", "a", "ip", 1, 200, 0, 1.23456, "ts")
        assert entry.to_dict()["duration_ms"] == 1.23


class TestLoggingMiddleware:

    def test_logs_text_line(self, caplog):
        middleware = LoggingMiddleware()

        with caplog.at_level(logging.INFO, logger="originserver.access"):
            response = middleware(make_request(), lambda request: not_found())

        assert response.status == 404
        assert '"GET notes.txt" 404 0' in caplog.text
        assert "10.0.0.5:40000" in caplog.text

    def test_logs_json_line(self, caplog):
        middleware = LoggingMiddleware(log_format="json")

        with caplog.at_level(logging.INFO, logger="originserver.access"):
            middleware(make_request(), lambda request: ok(b"abc"))

        record = json.loads(caplog.records[-1].getMessage())
        assert record["method"] == "GET"
        assert record["status_code"] == 200
        assert record["content_length"] == 3

    def test_exception_logged_and_reraised(self, caplog):
        def broken(request: HTTPRequest) -> HTTPResponse:
            raise RuntimeError("boom")

        with caplog.at_level(logging.INFO, logger="originserver.access"):
            with pytest.raises(RuntimeError):
                LoggingMiddleware()(make_request(), broken)

        assert "Request failed: GET notes.txt - RuntimeError: boom" in caplog.text

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            LoggingMiddleware(log_format="xml")


class TestMiddlewarePipeline:

    def test_first_added_is_outermost(self):
        calls = []

        class Recorder(Middleware):
            def __init__(self, label: str):
                self.label = label

            def __call__(self, request, next):
                calls.append(self.label)
                response = next(request)
                calls.append(f"/{self.label}")
                return response

        pipeline = MiddlewarePipeline().add(Recorder("outer")).add(Recorder("inner"))
        handler = pipeline.wrap(lambda request: ok())

        handler(make_request())

        assert calls == ["outer", "inner", "/inner", "/outer"]
        assert len(pipeline) == 2
