"""
Read-only JSON-RPC access to balance and recent activity for a wallet.
"""

from __future__ import annotations

import itertools
import logging
from typing import TYPE_CHECKING, Any

import requests

from walletauth.common.exceptions import NetworkError, ServerRejected
from walletauth.common.models import BalanceResult, SignatureInfo

if TYPE_CHECKING:
    from walletauth.client.domain.entities import Identity

HTTP_OK = 200

logger = logging.getLogger(__name__)


class ActivityReader:
    """Fetches lamport balance and recent signatures from an RPC node."""

    def __init__(self, rpc_url: str, timeout: float = 10, commitment: str = "confirmed"):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.commitment = commitment
        self._ids = itertools.count(1)

    def _call(self, method: str, params: list[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        try:
            r = requests.post(self.rpc_url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            msg = f"{method} request failed: {e}"
            raise NetworkError(msg) from e

        if r.status_code != HTTP_OK:
            msg = f"{method} request failed: {r.status_code}"
            raise ServerRejected(msg, r.status_code)

        try:
            body = r.json()
        except ValueError as e:
            msg = f"{method} response was not JSON"
            raise ServerRejected(msg, r.status_code) from e

        if not isinstance(body, dict):
            msg = f"{method} response was not a JSON-RPC object"
            raise ServerRejected(msg, r.status_code)
        if body.get("error"):
            error = body["error"]
            detail = error.get("message", error) if isinstance(error, dict) else error
            msg = f"{method} failed: {detail}"
            raise ServerRejected(msg, r.status_code)
        return body.get("result")

    def get_balance(self, identity: Identity) -> int:
        """Balance in lamports."""
        result = self._call(
            "getBalance", [identity.address, {"commitment": self.commitment}]
        )
        try:
            return BalanceResult.model_validate(result).value
        except ValueError as e:
            msg = f"getBalance response was malformed: {e}"
            raise ServerRejected(msg) from e

    def get_recent_signatures(
        self, identity: Identity, limit: int = 10
    ) -> list[SignatureInfo]:
        result = self._call(
            "getSignaturesForAddress",
            [identity.address, {"limit": limit, "commitment": self.commitment}],
        )
        try:
            return [SignatureInfo.model_validate(item) for item in result or []]
        except ValueError as e:
            msg = f"getSignaturesForAddress response was malformed: {e}"
            raise ServerRejected(msg) from e
