"""Click CLI for running and operating the salon booking bot."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import BinaryIO

import click

from src.audit.logger import validate_audit_chain
from src.webhook.channels import SendError
from src.webhook.signature import compute_signature, derive_telegram_secret
from src.webhook.telegram import TelegramChannel


@click.group()
@click.option("--log-level", default="INFO", help="Python logging level.")
def cli(log_level: str) -> None:
    """Salon booking bot: webhook server and operator tools."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind.")
@click.option("--port", default=8000, type=int, help="Port to listen on.")
def serve(host: str, port: int) -> None:
    """Run the webhook server (configuration from environment variables)."""
    import uvicorn

    uvicorn.run("src.server.app:create_app_from_env", factory=True, host=host, port=port)


@cli.command("verify-audit")
@click.argument("log_path", type=click.Path(exists=True, dir_okay=False))
def verify_audit(log_path: str) -> None:
    """Check the hash chain of an audit log file."""
    result = validate_audit_chain(Path(log_path))
    if result.valid:
        click.echo(f"Audit chain OK: {log_path}")
        return
    click.echo(f"Audit chain broken at line {result.broken_at_line}", err=True)
    sys.exit(1)


@cli.command("sign-payload")
@click.argument("payload_file", type=click.File("rb"))
@click.option("--secret", required=True, envvar="WHATSAPP_APP_SECRET", help="App secret.")
def sign_payload(payload_file: BinaryIO, secret: str) -> None:
    """Print the X-Hub-Signature-256 header value for a payload file."""
    click.echo(compute_signature(payload_file.read(), secret))


@cli.command("set-telegram-webhook")
@click.argument("url")
@click.option("--token", required=True, envvar="TELEGRAM_BOT_TOKEN", help="Bot token.")
@click.option(
    "--secret", default=None, envvar="TELEGRAM_WEBHOOK_SECRET",
    help="Secret token (defaults to one derived from the bot token).",
)
def set_telegram_webhook(url: str, token: str, secret: str | None) -> None:
    """Register URL as the bot's webhook together with its secret token.

    Without --secret the token is derived from the bot token; the server must
    then be started with TELEGRAM_WEBHOOK_SECRET set to the printed value.
    """
    secret = secret or derive_telegram_secret(token)
    channel = TelegramChannel(token, secret_token=secret)
    try:
        result = asyncio.run(channel.set_webhook(url))
    except SendError as exc:
        click.echo(f"Failed to set webhook: {exc}", err=True)
        sys.exit(1)
    click.echo(json.dumps(result, indent=2))
    click.echo(f"Secret token: {secret}", err=True)


if __name__ == "__main__":
    cli()
