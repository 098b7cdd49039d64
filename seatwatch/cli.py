"""seatwatch CLI: parse section tables, fetch them, migrate subscriptions.

Usage:
    seatwatch parse page.html                       # Print every section as JSON
    seatwatch parse page.html --crn 31245           # Print one section
    seatwatch fetch 202470 CSCI 132 --portal-url URL
    seatwatch migrate 31245 TRACKED_ID 202470 --db seatwatch.db
    seatwatch notify +14065550100 "A seat opened"
"""

from __future__ import annotations

import json
import logging
import warnings
from pathlib import Path

import click

from seatwatch.common.exceptions import (
    DuplicateArchiveWarning,
    NotificationConfigError,
    NotificationError,
    ScraperAssumptionException,
    StoreException,
    TransientException,
)
from seatwatch.config import Settings
from seatwatch.models import Section


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _dump_sections(sections: list[Section]) -> str:
    return json.dumps(
        [section.model_dump(by_alias=True) for section in sections], indent=2
    )


@click.group()
@click.version_option(package_name="seatwatch")
def cli() -> None:
    """seatwatch: course seat availability tracker."""


@cli.command()
@click.argument("html_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--crn", default=None, help="Only print the section with this CRN.")
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def parse(html_file: str, crn: str | None, verbose: bool) -> None:
    """Parse a saved portal page and print its sections as JSON."""
    from seatwatch.parser import parse_sections

    _configure_logging(verbose)

    document = Path(html_file).read_bytes()
    try:
        sections = parse_sections(document, crn=crn, source=html_file)
    except ScraperAssumptionException as e:
        raise click.ClickException(str(e)) from e

    click.echo(_dump_sections(sections))


@cli.command()
@click.argument("term")
@click.argument("dept")
@click.argument("course")
@click.option("--crn", default=None, help="Only print the section with this CRN.")
@click.option(
    "--portal-url",
    envvar="SEATWATCH_PORTAL_URL",
    required=True,
    help="URL the section search form posts to.",
)
@click.option(
    "--timeout",
    type=float,
    default=30.0,
    show_default=True,
    help="Request timeout in seconds.",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def fetch(
    term: str,
    dept: str,
    course: str,
    crn: str | None,
    portal_url: str,
    timeout: float,
    verbose: bool,
) -> None:
    """Fetch one course's sections from the portal and print them as JSON."""
    from seatwatch.portal import PortalClient

    _configure_logging(verbose)
    settings = Settings(portal_url=portal_url, portal_timeout=timeout)

    try:
        with PortalClient(
            settings.portal_url, timeout=settings.portal_timeout
        ) as portal:
            sections = portal.fetch_sections(term, dept, course, crn=crn)
    except (ScraperAssumptionException, TransientException) as e:
        raise click.ClickException(str(e)) from e

    click.echo(_dump_sections(sections))


@cli.command()
@click.argument("crn")
@click.argument("tracked_id")
@click.argument("term")
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False),
    envvar="SEATWATCH_DB",
    default="seatwatch.db",
    show_default=True,
    help="SQLite database path.",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def migrate(
    crn: str, tracked_id: str, term: str, db_path: str, verbose: bool
) -> None:
    """Move tracked subscription TRACKED_ID into the archive."""
    from seatwatch.migrate import ArchiveMigrator
    from seatwatch.store.sql import SQLRecordStore

    _configure_logging(verbose)
    settings = Settings(db_path=Path(db_path))

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", DuplicateArchiveWarning)
        try:
            with SQLRecordStore(settings.db_path) as store:
                result = ArchiveMigrator(store).migrate(crn, tracked_id, term)
        except (ScraperAssumptionException, StoreException) as e:
            raise click.ClickException(str(e)) from e

    for warning in caught:
        click.echo(f"Warning: {warning.message}", err=True)

    action = "Created" if result.created else "Merged into"
    click.echo(
        f"{action} {result.archive_ref.path} "
        f"({result.users_added} users moved)"
    )


@cli.command()
@click.argument("number")
@click.argument("message")
@click.option("--auth-id", envvar="PLIVO_AUTH_ID", help="SMS gateway auth id.")
@click.option(
    "--auth-token", envvar="PLIVO_AUTH_TOKEN", help="SMS gateway auth token."
)
@click.option(
    "--source-number",
    envvar="PLIVO_SRC_NUMBER",
    required=True,
    help="Number to send from.",
)
@click.option(
    "--endpoint",
    default=None,
    help="Message API URL with an {auth_id} placeholder.",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def notify(
    number: str,
    message: str,
    auth_id: str | None,
    auth_token: str | None,
    source_number: str,
    endpoint: str | None,
    verbose: bool,
) -> None:
    """Send MESSAGE to NUMBER by SMS."""
    from seatwatch.notify import PLIVO_API_ENDPOINT, SmsClient

    _configure_logging(verbose)
    settings = Settings(
        sms_auth_id=auth_id,
        sms_auth_token=auth_token,
        sms_source_number=source_number,
    )

    try:
        with SmsClient(
            settings.sms_auth_id,
            settings.sms_auth_token,
            settings.sms_source_number,
            endpoint=endpoint or PLIVO_API_ENDPOINT,
        ) as sms:
            response = sms.send_text(number, message)
    except (
        NotificationConfigError,
        NotificationError,
        TransientException,
    ) as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Sent (HTTP {response.status_code})")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
