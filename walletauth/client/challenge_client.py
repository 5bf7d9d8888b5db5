"""
HTTP client for the nonce/verify authentication service.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

import requests
from pydantic import BaseModel

from walletauth.common.exceptions import NetworkError, ServerRejected
from walletauth.common.models import (
    Challenge,
    Credentials,
    NonceRequest,
    NonceResponse,
    VerifyRequest,
    VerifyResponse,
)

if TYPE_CHECKING:
    from walletauth.client.domain.entities import Identity, Signature

logger = logging.getLogger(__name__)

HTTP_OK = 200
HTTP_MULTIPLE_CHOICES = 300

ResponseT = TypeVar("ResponseT", bound=BaseModel)


def _error_detail(response: requests.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            if isinstance(body.get(key), str):
                return body[key]
    return None


class ChallengeClient:
    """Requests nonces and submits signatures. No retries, no nonce caching."""

    def __init__(
        self,
        api_base_url: str,
        timeout: float = 10,
        nonce_path: str = "/auth/nonce",
        verify_path: str = "/auth/verify",
    ):
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout
        self.nonce_path = nonce_path
        self.verify_path = verify_path

    def _post(
        self,
        path: str,
        payload: dict[str, Any],
        response_model: type[ResponseT],
        action: str,
    ) -> ResponseT:
        url = f"{self.api_base_url}{path}"
        try:
            r = requests.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            msg = f"{action} request failed: {e}"
            raise NetworkError(msg) from e

        if not HTTP_OK <= r.status_code < HTTP_MULTIPLE_CHOICES:
            msg = f"{action} request failed: {r.status_code}"
            detail = _error_detail(r)
            if detail:
                msg = f"{msg} ({detail})"
            raise ServerRejected(msg, r.status_code)

        try:
            return response_model.model_validate(r.json())
        except ValueError as e:
            msg = f"{action} response was malformed: {e}"
            raise ServerRejected(msg, r.status_code) from e

    def request_nonce(self, identity: Identity) -> Challenge:
        """Ask the server for a single-use challenge for identity."""
        logger.info("Requesting nonce for %s", identity.short_address)
        req = NonceRequest(wallet=identity.address)
        resp = self._post(self.nonce_path, req.model_dump(), NonceResponse, "Nonce")
        logger.debug("Received nonce %s", resp.data.nonce)
        return resp.data

    def verify(
        self, identity: Identity, signature: Signature, nonce: str
    ) -> Credentials:
        """Submit a signature over the challenge message for verification."""
        logger.info("Submitting signature for nonce %s", nonce)
        req = VerifyRequest(wallet=identity.address, signature=signature.text, nonce=nonce)
        resp = self._post(
            self.verify_path, req.model_dump(), VerifyResponse, "Verify"
        )
        return resp.data
