"""Flask CLI commands for operating the refresh-token store."""

from __future__ import annotations

import logging

import click
from flask import current_app
from flask.cli import with_appcontext

from sessionguard.core.extensions import STORE_KEY, db, get_extension
from sessionguard.services._shared.errors import ServiceError

LOGGER = logging.getLogger(__name__)


def _auth_service():
    # Imported lazily so ``flask --help`` works without a configured app.
    from sessionguard.api.deps import get_auth_service

    return get_auth_service()


def _ensure_non_production() -> None:
    """Abort token issuance when running in production."""
    config = current_app.config
    if not config.get("DEBUG") and not config.get("TESTING"):
        raise click.UsageError(
            "The 'flask tokens issue' command is restricted to non-production environments."
        )


@click.group("tokens")
@click.option("--verbose", is_flag=True, help="Enable verbose logging for token commands.")
def tokens_cli(verbose: bool) -> None:
    """Refresh-token housekeeping and operator commands."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.getLogger("sessionguard").setLevel(level)


@tokens_cli.command("init-db")
@with_appcontext
def init_db_command() -> None:
    """Create the refresh-token table if it does not exist."""
    db.create_all()
    click.echo("refresh_tokens table ready.")


@tokens_cli.command("issue")
@click.argument("user_id")
@click.option("--email", default=None, help="Email claim for the access token.")
@with_appcontext
def issue_command(user_id: str, email: str | None) -> None:
    """Issue an initial token pair for USER_ID (development helper)."""
    _ensure_non_production()
    try:
        pair = _auth_service().issue_initial_pair(user_id, email)
    except ServiceError as exc:
        raise click.ClickException(f"Issuing tokens failed: {exc}") from exc
    click.echo(f"access_token={pair.access_token}")
    click.echo(f"refresh_token={pair.refresh_token}")


@tokens_cli.command("revoke-user")
@click.argument("user_id")
@with_appcontext
def revoke_user_command(user_id: str) -> None:
    """Revoke every outstanding session of USER_ID."""
    try:
        revoked = _auth_service().logout_all(user_id)
    except ServiceError as exc:
        raise click.ClickException(f"Revocation failed: {exc}") from exc
    click.echo(f"Revoked {revoked} session(s) for user {user_id}.")


@tokens_cli.command("sessions")
@click.argument("user_id")
@with_appcontext
def sessions_command(user_id: str) -> None:
    """List outstanding sessions of USER_ID, oldest first."""
    try:
        records = _auth_service().list_sessions(user_id)
    except ServiceError as exc:
        raise click.ClickException(f"Listing sessions failed: {exc}") from exc
    if not records:
        click.echo("  (no sessions)")
        return
    for record in records:
        click.echo(
            f"  created={record.created_at.isoformat()}  expires={record.expires_at.isoformat()}"
        )


@tokens_cli.command("purge-expired")
@with_appcontext
def purge_expired_command() -> None:
    """Delete refresh-token records that are already past their expiry."""
    try:
        removed = get_extension(STORE_KEY).purge_expired()
    except ServiceError as exc:
        raise click.ClickException(f"Purge failed: {exc}") from exc
    LOGGER.info("refresh_store.purged", extra={"removed": removed})
    click.echo(f"Purged {removed} expired refresh token(s).")
