"""Moltbook API client."""

from __future__ import annotations

import json
import logging
import mimetypes
from pathlib import Path

import click
import httpx
from pydantic import ValidationError

from .config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from .errors import ApiError, IoError, NetworkError, RateLimited, VerificationRequired
from .models import VerificationChallenge

log = logging.getLogger(__name__)


class MoltbookClient:
    """Thin wrapper around the Moltbook REST API."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        debug: bool = False,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.debug = debug
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    def _echo(self, line: str) -> None:
        if self.debug:
            click.echo(line, err=True)

    def call(self, method: str, path: str, body: dict | None = None, params: dict | None = None):
        """Send one JSON request and return the decoded response body."""
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        self._echo(f"{method} {self.base_url}{path}" + (f" {params}" if params else ""))
        if body is not None:
            self._echo(f"Body: {json.dumps(body, indent=2)}")
        try:
            resp = self._client.request(method, path, json=body, params=params or None)
        except httpx.TimeoutException as exc:
            raise NetworkError("Request timed out", timeout=True) from exc
        except httpx.RequestError as exc:
            raise NetworkError(str(exc)) from exc
        return self._handle_response(resp)

    def get(self, path: str, **params):
        return self.call("GET", path, params=params)

    def post(self, path: str, body: dict | None = None):
        return self.call("POST", path, body=body if body is not None else {})

    def patch(self, path: str, body: dict):
        return self.call("PATCH", path, body=body)

    def delete(self, path: str):
        return self.call("DELETE", path)

    def upload(self, path: str, file_path: Path):
        """POST a file as multipart/form-data under the ``file`` field."""
        file_path = Path(file_path)
        try:
            contents = file_path.read_bytes()
        except OSError as exc:
            raise IoError(f"Unable to read {file_path}: {exc}") from exc
        mime_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
        self._echo(f"POST (File) {self.base_url}{path}")
        self._echo(f"File: {file_path}")
        try:
            resp = self._client.post(path, files={"file": (file_path.name, contents, mime_type)})
        except httpx.TimeoutException as exc:
            raise NetworkError("Request timed out", timeout=True) from exc
        except httpx.RequestError as exc:
            raise NetworkError(str(exc)) from exc
        return self._handle_response(resp)

    def _handle_response(self, resp: httpx.Response):
        text = resp.text
        self._echo(f"Response Status: {resp.status_code}")
        self._echo(f"Response Body: {text}")

        data = None
        if text.strip():
            try:
                data = resp.json()
            except ValueError:
                data = None

        if resp.status_code == 429:
            retry_after = None
            if isinstance(data, dict):
                if data.get("retry_after_minutes") is not None:
                    retry_after = f"{data['retry_after_minutes']} minutes"
                elif data.get("retry_after_seconds") is not None:
                    retry_after = f"{data['retry_after_seconds']} seconds"
            raise RateLimited(retry_after, hint=_hint(data))

        if resp.status_code >= 400:
            if isinstance(data, dict):
                error = data.get("error") or data.get("message")
                if error == "captcha_required":
                    challenge = VerificationChallenge(code=str(data.get("token", "")), instructions="CAPTCHA required")
                    raise VerificationRequired(challenge, "request")
                if isinstance(error, str) and error:
                    raise ApiError(resp.status_code, error, _hint(data))
            raise ApiError(resp.status_code, f"HTTP {resp.status_code}", text[:200] if data is None else "")

        if not text.strip():
            return {}
        if data is None:
            raise ApiError(resp.status_code, f"Invalid JSON response: {text[:200]}", code="INVALID_RESPONSE")
        return data

    def close(self):
        self._client.close()


def _hint(data) -> str:
    if isinstance(data, dict) and isinstance(data.get("hint"), str):
        return data["hint"]
    return ""


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def decode(model, payload, key: str | None = None):
    """Validate ``payload`` (or ``payload[key]``) as ``model``; fall back to raw JSON."""
    value = payload
    if key and isinstance(payload, dict) and key in payload:
        value = payload[key]
    try:
        return model.model_validate(value)
    except ValidationError as exc:
        log.debug("Falling back to raw JSON for %s: %s", model.__name__, exc.errors()[:1])
        return value


def decode_list(model, payload, key: str, nested: str = "items") -> list:
    """Decode a list that may arrive bare, as ``{key: [...]}`` or as ``{key: {nested: [...]}}``."""
    items = payload
    if isinstance(payload, dict):
        items = payload.get(key, [])
        if isinstance(items, dict):
            items = items.get(nested, [])
    if not isinstance(items, list):
        raise ApiError(0, f"Unexpected response format for {key}", code="INVALID_RESPONSE")
    try:
        return [model.model_validate(item) for item in items]
    except ValidationError as exc:
        log.debug("Falling back to raw JSON for %s list: %s", model.__name__, exc.errors()[:1])
        return items
