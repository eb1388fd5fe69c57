import json
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Request:
    method: str
    path: str
    headers: dict[str, str]
    query_params: dict[str, list]
    body: bytes
    version: str
    _json: dict[str, Any] | None = field(init=False, repr=False, default=None)

    def __post_init__(self):
        if not self.body:
            return
        try:
            parsed = json.loads(self.body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return
        if isinstance(parsed, dict):
            self._json = parsed

    def json(self) -> dict[str, Any] | None:
        """Body as a JSON object, or None if it is empty, invalid or not an object."""
        return self._json

    def query(self, name: str, default: str | None = None) -> str | None:
        """First value of a query parameter."""
        if not name:
            raise ValueError("Query parameter name cannot be empty")

        values = self.query_params.get(name)
        if values:
            return values[0]
        return default
