"""
Configuration settings for the wallet authentication client.
"""

from __future__ import annotations

import logging
import os


class Config:
    """Central configuration class for all client settings."""

    def __init__(self) -> None:
        # Remote services
        self.API_BASE_URL: str = os.getenv(
            "WALLETAUTH_API_BASE_URL", "http://127.0.0.1:8787/api/v1"
        ).rstrip("/")
        self.RPC_URL: str = os.getenv(
            "WALLETAUTH_RPC_URL", "https://api.devnet.solana.com"
        )
        self.REQUEST_TIMEOUT: float = float(
            os.getenv("WALLETAUTH_REQUEST_TIMEOUT", "10")
        )  # Seconds, passed to the HTTP transport

        # Identity presented to the wallet on authorize
        self.CLUSTER: str = os.getenv("WALLETAUTH_CLUSTER", "devnet")
        self.APP_NAME: str = os.getenv("WALLETAUTH_APP_NAME", "SolMobile Wallet")
        self.APP_URI: str = os.getenv("WALLETAUTH_APP_URI", "https://localhost")
        self.APP_ICON: str = os.getenv("WALLETAUTH_APP_ICON", "favicon.ico")

        # Protocol constants
        self.NONCE_PATH: str = "/auth/nonce"
        self.VERIFY_PATH: str = "/auth/verify"
        self.RECENT_SIGNATURES_LIMIT: int = 10

        # Logging
        self.LOG_LEVEL: int = logging.INFO
