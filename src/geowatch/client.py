from __future__ import annotations

from typing import Any, Dict, Iterable, Optional
from urllib.parse import quote

import httpx

from .exceptions import (
    AuthenticationError,
    ConnectionError,
    GeoWatchError,
    NotFoundError,
    ServerError,
    ValidationError,
)
from .models import DocumentView
from .settings import GeoWatchSettings
from .types import GeoPoint


class HttpDocumentStore:
    """DocumentStore backed by a REST document service."""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8080",
        collection: str = "locations",
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.collection = collection
        self.api_key = api_key
        self._timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(
        cls, settings: GeoWatchSettings, client: Optional[httpx.Client] = None
    ) -> "HttpDocumentStore":
        return cls(
            base_url=settings.base_url,
            collection=settings.collection,
            api_key=settings.api_key,
            timeout=settings.timeout,
            client=client,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpDocumentStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            response = self._request("GET", self._path(key))
        except NotFoundError:
            return None
        return DocumentView.model_validate(response.json()).data

    def set(self, key: str, fields: Dict[str, Any], merge: bool = False) -> None:
        params = {"merge": self._bool_param(merge)}
        self._request("PUT", self._path(key), json=self._encode(fields), params=params)

    def update(self, key: str, deletions: Iterable[str]) -> None:
        payload = {"delete": list(deletions)}
        if not payload["delete"]:
            raise ValueError("update requires at least one field")
        self._request("PATCH", self._path(key), json=payload)

    def delete(self, key: str) -> None:
        self._request("DELETE", self._path(key))

    def _path(self, key: str) -> str:
        return f"/collections/{quote(self.collection, safe='')}/documents/{quote(key, safe='')}"

    @staticmethod
    def _encode(fields: Dict[str, Any]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        for name, value in fields.items():
            if isinstance(value, GeoPoint):
                payload[name] = {"lat": value.lat, "lon": value.lon}
            else:
                payload[name] = value
        return payload

    def _headers(self) -> Dict[str, str]:
        headers = {}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self._client.request(
                method,
                url,
                headers=self._headers(),
                json=json,
                params=params,
            )
        except httpx.RequestError as exc:
            raise ConnectionError(str(exc)) from exc

        if 200 <= response.status_code < 300:
            return response

        message = response.text or response.reason_phrase
        self._raise_for_status(response.status_code, message)
        return response

    @staticmethod
    def _bool_param(value: bool) -> str:
        return "true" if value else "false"

    @staticmethod
    def _raise_for_status(status_code: int, message: str) -> None:
        if status_code == 400:
            raise ValidationError(message)
        if status_code == 401:
            raise AuthenticationError(message)
        if status_code == 404:
            raise NotFoundError(message)
        if status_code >= 500:
            raise ServerError(message)
        raise GeoWatchError(message)
