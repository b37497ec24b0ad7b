"""
Request logging middleware.

Every API call gets a request id (taken from X-Request-ID when the client
sends one) that is bound to the log context and echoed in the response.
JSON bodies are logged with credentials masked; spreadsheet uploads are
logged by size only.
"""
import json
import time
import uuid
from typing import Any, Callable, Dict, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from equipment_tracker.core.config import settings
from equipment_tracker.core.logger import app_logger, clear_request_context, start_request_context
from equipment_tracker.core.sensitive import REDACTED, SENSITIVE_HEADERS, redact

# Probes and docs are not worth a log line
QUIET_PATHS = frozenset({"/", "/api/health", "/docs", "/redoc", "/openapi.json"})

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

MAX_BODY_LOG_BYTES = 10_000


def _sanitize_headers(headers: Dict[str, str]) -> Dict[str, str]:
    return {
        key: REDACTED if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


def describe_json_body(body: bytes) -> Any:
    """Decoded JSON body with credentials masked, or a short placeholder."""
    if not body:
        return None
    if len(body) > MAX_BODY_LOG_BYTES:
        return f"<body too large: {len(body)} bytes>"
    try:
        return redact(json.loads(body))
    except ValueError:
        return f"<unparseable body: {len(body)} bytes>"


class LoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        path = request.url.path
        start_request_context(request_id, method=request.method, path=path)

        quiet = path in QUIET_PATHS
        started = time.perf_counter()
        response: Optional[Response] = None
        try:
            if not quiet:
                await self._log_request(request)
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as exc:
            app_logger.exception("Request failed with exception", extra={"exception_type": type(exc).__name__})
            raise
        finally:
            if not quiet and response is not None:
                self._log_response(response, (time.perf_counter() - started) * 1000)
            clear_request_context()

    async def _log_request(self, request: Request) -> None:
        extra: Dict[str, Any] = {
            "query_params": dict(request.query_params) or None,
            "headers": _sanitize_headers(dict(request.headers)),
            "client_ip": request.client.host if request.client else "unknown",
        }

        if request.method in BODY_METHODS:
            content_type = request.headers.get("content-type", "")
            if "application/json" in content_type:
                extra["body"] = describe_json_body(await self._read_body(request))
            elif content_type:
                # workbooks and other uploads: size only
                extra["content_type"] = content_type.split(";")[0]
                extra["content_length"] = request.headers.get("content-length")

        self._debug_or_info("API Request", extra)

    def _log_response(self, response: Response, process_time_ms: float) -> None:
        extra = {"status_code": response.status_code, "process_time_ms": round(process_time_ms, 2)}
        if response.status_code >= 500:
            app_logger.error("API Response", extra=extra)
        elif response.status_code >= 400:
            app_logger.warning("API Response", extra=extra)
        else:
            self._debug_or_info("API Response", extra)

    @staticmethod
    def _debug_or_info(message: str, extra: Dict[str, Any]) -> None:
        if settings.ENVIRONMENT == "prod":
            app_logger.info(message, extra=extra)
        else:
            app_logger.debug(message, extra=extra)

    @staticmethod
    async def _read_body(request: Request) -> bytes:
        body = await request.body()

        async def receive() -> Dict[str, Any]:
            return {"type": "http.request", "body": body, "more_body": False}

        # hand the consumed body on to the endpoint
        request._receive = receive  # type: ignore[attr-defined]
        return body
