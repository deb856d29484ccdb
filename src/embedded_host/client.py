from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from embedded_host.pipeline.environment import (
    RESPONSE_REASON_PHRASE,
    EnvironmentFactory,
    response_body,
    response_headers,
    response_status,
)

if TYPE_CHECKING:
    from embedded_host.host import EmbeddedHost


@dataclass(frozen=True, slots=True)
class Response:
    # Snapshot of the response fields after the pipeline completed.
    status_code: int
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)
    reason_phrase: str | None = None
    environment: Mapping[str, object] = field(default_factory=dict, repr=False)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding)


class EmbeddedClient:
    # Builds an environment per request, dispatches it through the host and reads the response back.
    def __init__(
        self,
        host: EmbeddedHost,
        *,
        base_headers: Mapping[str, str] | None = None,
        factory: EnvironmentFactory | None = None,
    ) -> None:
        self._host = host
        self._base_headers = dict(base_headers or {})
        self._factory = factory if factory is not None else EnvironmentFactory()

    async def send(
        self,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes | str = b"",
        query_string: str = "",
    ) -> Response:
        merged = dict(self._base_headers)
        if headers:
            merged.update(headers)
        payload = body.encode("utf-8") if isinstance(body, str) else body
        env = self._factory.new(method, path, headers=merged, body=payload, query_string=query_string)
        await self._host.dispatch(env)
        reason = env.get(RESPONSE_REASON_PHRASE)
        return Response(
            status_code=response_status(env),
            body=response_body(env),
            headers=response_headers(env),
            reason_phrase=reason if isinstance(reason, str) else None,
            environment=env,
        )

    async def get(self, path: str, **kwargs: object) -> Response:
        return await self.send("GET", path, **kwargs)  # type: ignore[arg-type]

    async def post(self, path: str, body: bytes | str = b"", **kwargs: object) -> Response:
        return await self.send("POST", path, body=body, **kwargs)  # type: ignore[arg-type]
