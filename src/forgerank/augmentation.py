"""HTTP client for the optional external evidence assessor."""

from __future__ import annotations

import json
from typing import Any
from urllib import error, request

import structlog


class HTTPAugmentationClient:
    """Simple HTTP client for an external evidence assessment API.

    Posts the per-requirement payload as JSON and expects ``{"items": [...]}``
    back. Transport failures are logged and reported as ``None`` so the
    scorer can retry and then fall back.
    """

    def __init__(self, endpoint: str | None, api_key: str | None = None, *, timeout: float = 10.0):
        self._endpoint = endpoint
        self._api_key = api_key
        self._timeout = timeout
        self._logger = structlog.get_logger(__name__)

    @property
    def enabled(self) -> bool:
        return bool(self._endpoint)

    def assess(self, payload: dict[str, Any]) -> dict[str, Any] | None:
        if not self._endpoint:
            return None
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        req = request.Request(self._endpoint, data=data, headers=headers, method="POST")
        try:
            with request.urlopen(req, timeout=self._timeout) as resp:
                body = resp.read().decode("utf-8")
                return json.loads(body) if body else {}
        except (error.URLError, TimeoutError, json.JSONDecodeError) as exc:  # pragma: no cover - error path
            self._logger.warning("augmentation.request_failed", endpoint=self._endpoint, error=str(exc))
            return None
