from __future__ import annotations

import io
from collections.abc import Awaitable, Callable, Mapping, MutableMapping
from dataclasses import dataclass, field

# One request/response exchange. The key set is a shared vocabulary; the host
# forwards the mapping opaquely and never validates it.
Environment = MutableMapping[str, object]

# Head of an assembled middleware chain.
AppFunc = Callable[[Environment], Awaitable[None]]

# Middleware receives the next link and returns the link that wraps it.
Middleware = Callable[..., AppFunc]

REQUEST_METHOD = "request.method"
REQUEST_SCHEME = "request.scheme"
REQUEST_PROTOCOL = "request.protocol"
REQUEST_PATH_BASE = "request.path_base"
REQUEST_PATH = "request.path"
REQUEST_QUERY_STRING = "request.query_string"
REQUEST_HEADERS = "request.headers"
REQUEST_BODY = "request.body"

RESPONSE_STATUS_CODE = "response.status_code"
RESPONSE_REASON_PHRASE = "response.reason_phrase"
RESPONSE_HEADERS = "response.headers"
RESPONSE_BODY = "response.body"

HOST_APP_NAME = "host.app_name"
HOST_ERROR = "host.error"

DEFAULT_STATUS_CODE = 200


@dataclass(frozen=True, slots=True)
class EnvironmentFactory:
    # Builds a fresh, well-formed environment per dispatch.
    scheme: str = "http"
    protocol: str = "HTTP/1.1"
    path_base: str = ""
    default_headers: Mapping[str, str] = field(default_factory=dict)

    def new(
        self,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
        query_string: str = "",
    ) -> dict[str, object]:
        if not method:
            raise ValueError("Request method must be a non-empty string")
        if not path.startswith("/"):
            raise ValueError(f"Request path must start with '/': {path!r}")
        request_headers = dict(self.default_headers)
        if headers:
            request_headers.update(headers)
        return {
            REQUEST_METHOD: method.upper(),
            REQUEST_SCHEME: self.scheme,
            REQUEST_PROTOCOL: self.protocol,
            REQUEST_PATH_BASE: self.path_base,
            REQUEST_PATH: path,
            REQUEST_QUERY_STRING: query_string,
            REQUEST_HEADERS: request_headers,
            REQUEST_BODY: io.BytesIO(body),
            RESPONSE_STATUS_CODE: DEFAULT_STATUS_CODE,
            RESPONSE_HEADERS: {},
            RESPONSE_BODY: io.BytesIO(),
        }


def response_status(env: Mapping[str, object]) -> int:
    status = env.get(RESPONSE_STATUS_CODE, DEFAULT_STATUS_CODE)
    if not isinstance(status, int):
        raise TypeError(f"{RESPONSE_STATUS_CODE} must be an int, got {type(status).__name__}")
    return status


def response_headers(env: Mapping[str, object]) -> dict[str, str]:
    headers = env.get(RESPONSE_HEADERS)
    if headers is None:
        return {}
    if not isinstance(headers, Mapping):
        raise TypeError(f"{RESPONSE_HEADERS} must be a mapping")
    return dict(headers)


def response_body(env: Mapping[str, object]) -> bytes:
    # Reads the whole response stream without disturbing middleware that kept a handle on it.
    body = env.get(RESPONSE_BODY)
    if body is None:
        return b""
    if isinstance(body, io.BytesIO):
        return body.getvalue()
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    raise TypeError(f"{RESPONSE_BODY} must be a BytesIO or bytes")


def response_text(env: Mapping[str, object], encoding: str = "utf-8") -> str:
    return response_body(env).decode(encoding)


def request_body(env: Mapping[str, object]) -> bytes:
    body = env.get(REQUEST_BODY)
    if body is None:
        return b""
    if isinstance(body, io.BytesIO):
        return body.getvalue()
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    raise TypeError(f"{REQUEST_BODY} must be a BytesIO or bytes")


def write_response(env: Environment, data: bytes | str, *, encoding: str = "utf-8") -> None:
    # Appends to the response stream, creating it when a caller-built environment lacks one.
    payload = data.encode(encoding) if isinstance(data, str) else data
    body = env.get(RESPONSE_BODY)
    if not isinstance(body, io.BytesIO):
        body = io.BytesIO()
        env[RESPONSE_BODY] = body
    body.write(payload)
