"""
Command-line interface for wallet authentication.
"""

from __future__ import annotations

import logging

import click

from walletauth.client.activity import ActivityReader
from walletauth.client.challenge_client import ChallengeClient
from walletauth.client.domain.entities import Identity, VerificationResult
from walletauth.client.messages import verify_message_signature
from walletauth.common.config import Config
from walletauth.common.decorators import retry_on_transient
from walletauth.common.exceptions import WalletAuthError
from walletauth.common.logging_utils import setup_logger


def _identity(address: str) -> Identity:
    try:
        return Identity.from_address(address)
    except ValueError as err:
        msg = f"Not a wallet address: {address}"
        raise click.BadParameter(msg, param_hint="--wallet") from err


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:  # noqa: FBT001
    """Wallet challenge-response authentication CLI"""
    level = logging.DEBUG if verbose else logging.WARNING
    setup_logger(level)


@cli.command()
@click.argument("message")
@click.argument("signature")
@click.option("--wallet", required=True, help="Base58 public key of the signer")
def verify(message: str, signature: str, wallet: str) -> None:
    """Verify a base58 signature over MESSAGE offline"""
    result = verify_message_signature(_identity(wallet), message, signature)
    click.echo(result.value)
    if result is not VerificationResult.VALID:
        raise SystemExit(1)


@cli.command()
@click.option("--wallet", required=True, help="Base58 public key to authenticate")
@click.option(
    "--api-url",
    default=None,
    help="Authentication API base URL (default: from WALLETAUTH_API_BASE_URL)",
)
@click.option(
    "--retries",
    default=0,
    type=int,
    help="Retries on network failure (default: 0)",
)
def nonce(wallet: str, api_url: str | None, retries: int) -> None:
    """Request an authentication challenge for a wallet"""
    config = Config()
    client = ChallengeClient(
        api_url or config.API_BASE_URL,
        timeout=config.REQUEST_TIMEOUT,
        nonce_path=config.NONCE_PATH,
        verify_path=config.VERIFY_PATH,
    )
    request_nonce = retry_on_transient(max_retries=retries)(client.request_nonce)
    try:
        challenge = request_nonce(_identity(wallet))
    except WalletAuthError as e:
        raise click.ClickException(str(e)) from e
    click.echo(challenge.model_dump_json(indent=2))


@cli.command()
@click.option("--wallet", required=True, help="Base58 public key to inspect")
@click.option(
    "--rpc-url",
    default=None,
    help="JSON-RPC endpoint (default: from WALLETAUTH_RPC_URL)",
)
@click.option("--limit", default=None, type=int, help="Number of recent signatures")
def activity(wallet: str, rpc_url: str | None, limit: int | None) -> None:
    """Show balance and recent signatures for a wallet"""
    config = Config()
    identity = _identity(wallet)
    reader = ActivityReader(rpc_url or config.RPC_URL, timeout=config.REQUEST_TIMEOUT)
    try:
        balance = reader.get_balance(identity)
        recent = reader.get_recent_signatures(
            identity, limit if limit is not None else config.RECENT_SIGNATURES_LIMIT
        )
    except WalletAuthError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Wallet: {identity.address}")
    click.echo(f"Balance: {balance} lamports")
    for item in recent:
        status = "failed" if item.err else "ok"
        click.echo(f"{item.signature}  slot={item.slot}  {status}")


if __name__ == "__main__":
    cli()
