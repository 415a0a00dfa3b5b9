"""GraphQL transport over HTTP POST."""

from __future__ import annotations

import json
import logging
from typing import Any

import requests

from boardsync.config import ClientOptions
from boardsync.exceptions import ClientNotConfiguredError, GraphQLError, TransportError
from boardsync.logging_config import sanitize_for_log, truncate_for_log

logger = logging.getLogger(__name__)

FEATURE_HEADER = "GraphQL-Features"


def join_features(features: list[str]) -> str:
    """Join feature preview names with commas"""
    return ",".join(f for f in features if f)


def build_headers(options: ClientOptions) -> dict[str, str]:
    """Headers sent with every request: credential, content type, previews"""
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/vnd.github+json",
    }
    if options.token:
        headers["Authorization"] = f"bearer {options.token}"
    features = join_features(options.features)
    if features:
        headers[FEATURE_HEADER] = features
    return headers


class GraphQLTransport:
    """Send GraphQL documents to the project board endpoint

    One transport owns one HTTP session and one credential. Calls block until
    the server answers or the network fails; there is no cancellation.
    """

    def __init__(self, options: ClientOptions | None = None):
        self.options = options or ClientOptions()
        self.endpoint = self.options.endpoint
        self.session = self.options.session or requests.Session()
        self._owns_session = self.options.session is None
        self.session.headers.update(build_headers(self.options))

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> GraphQLTransport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _post(self, body: str) -> dict[str, Any]:
        """POST an encoded JSON body and decode the response envelope

        Raises:
            ClientNotConfiguredError: If no credential is configured
            TransportError: On network failure, HTTP status >= 400 or a body
                            that is not a JSON object
        """
        if not self.options.token:
            raise ClientNotConfiguredError()

        logger.debug("POST %s %s", self.endpoint, sanitize_for_log(truncate_for_log(body)))
        try:
            response = self.session.post(
                self.endpoint, data=body.encode("utf-8"), timeout=self.options.timeout
            )
        except requests.RequestException as e:
            raise TransportError(
                f"Network error talking to {self.endpoint}: {e}\n"
                "Check your internet connection and try again."
            ) from e

        status_code = response.status_code
        if status_code >= 400:
            response_text = response.text or ""
            message = response_text[:200]
            try:
                payload = response.json()
                if isinstance(payload, dict) and payload.get("message"):
                    message = str(payload["message"])
            except ValueError:
                pass
            raise TransportError(
                f"HTTP {status_code}: {message}",
                status_code=status_code,
                response_text=response_text,
                retry_after=response.headers.get("Retry-After"),
            )

        try:
            envelope = response.json()
        except ValueError as e:
            raise TransportError(
                f"Invalid JSON response: {e}",
                status_code=status_code,
                response_text=response.text,
            ) from e

        if not isinstance(envelope, dict):
            raise TransportError(
                "Expected a JSON object in response",
                status_code=status_code,
                response_text=response.text,
            )
        return envelope

    def execute(self, document: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run one query or mutation and return its data object

        Raises:
            TransportError: If the HTTP exchange failed
            GraphQLError: If the envelope carried errors
        """
        payload: dict[str, Any] = {"query": document}
        if variables:
            payload["variables"] = variables

        envelope = self._post(json.dumps(payload, allow_nan=False))
        errors = envelope.get("errors")
        if errors:
            raise GraphQLError(list(errors), data=envelope.get("data"))
        return dict(envelope.get("data") or {})

    def execute_raw(self, body: str) -> dict[str, Any]:
        """Send a pre-encoded request body and return the whole envelope

        GraphQL errors are not raised here: the caller attributes them to
        individual aliased operations.
        """
        envelope = self._post(body)
        envelope.setdefault("data", None)
        envelope.setdefault("errors", [])
        return envelope
