import json
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Response:
    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def json(self, payload: dict[str, Any]) -> 'Response':
        return Response(
            status=self.status,
            headers={**self.headers, 'content-type': 'application/json'},
            body=json.dumps(payload).encode()
        )

    def error(self, message: str) -> 'Response':
        return self.json({"error": message})


def response(status_code: int = 200, headers: dict[str, str] | None = None) -> Response:
    return Response(
        status=status_code,
        headers={} if headers is None else dict(headers)
    )
