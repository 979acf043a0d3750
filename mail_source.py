"""Load alert messages from local mailbox exports (.eml files or mbox)."""

from __future__ import annotations

import logging
import mailbox
from collections.abc import Iterable, Iterator
from datetime import UTC, datetime
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import parsedate_to_datetime
from pathlib import Path

from models import AlertMessage

LOGGER = logging.getLogger(__name__)


def load_messages(
    paths: Iterable[str | Path],
    sender: str | None = None,
    since: datetime | None = None,
) -> list[AlertMessage]:
    """Read alert messages from .eml files, mbox files or directories of .eml files.

    Args:
        paths:  Files or directories to read.
        sender: Keep only messages whose From header contains this (case-insensitive).
        since:  Keep only messages received at or after this time. Messages
            without a parseable Date header are kept.
    """
    messages: list[AlertMessage] = []
    skipped = 0

    for raw in _iter_raw_messages(paths):
        message = to_alert_message(raw)
        if sender and sender.lower() not in message.sender.lower():
            skipped += 1
            continue
        if since is not None and message.received_at is not None and message.received_at < since:
            skipped += 1
            continue
        messages.append(message)

    LOGGER.info("Mail source: loaded=%s filtered_out=%s", len(messages), skipped)
    return messages


def to_alert_message(raw: EmailMessage) -> AlertMessage:
    """Flatten one parsed email into the fields the digest needs."""
    plain_part = raw.get_body(preferencelist=("plain",))
    html_part = raw.get_body(preferencelist=("html",))
    return AlertMessage(
        subject=str(raw.get("Subject", "")).strip(),
        plain_body=_part_text(plain_part),
        html_body=_part_text(html_part),
        sender=str(raw.get("From", "")),
        received_at=_parse_date(raw.get("Date")),
    )


def _iter_raw_messages(paths: Iterable[str | Path]) -> Iterator[EmailMessage]:
    for entry in paths:
        path = Path(entry)
        if path.is_dir():
            files = sorted(path.glob("*.eml"))
        else:
            files = [path]

        for file in files:
            try:
                if file.suffix.lower() == ".eml":
                    with file.open("rb") as fh:
                        yield BytesParser(policy=policy.default).parse(fh)
                else:
                    yield from _read_mbox(file)
            except OSError as exc:
                LOGGER.warning("Mail source: cannot read %s, skipping: %s", file, exc)


def _read_mbox(path: Path) -> Iterator[EmailMessage]:
    if not path.exists():
        raise FileNotFoundError(path)
    box = mailbox.mbox(str(path), factory=lambda fh: BytesParser(policy=policy.default).parse(fh), create=False)
    try:
        yield from box
    finally:
        box.close()


def _part_text(part: EmailMessage | None) -> str:
    if part is None:
        return ""
    try:
        return part.get_content()
    except (LookupError, UnicodeDecodeError):
        payload = part.get_payload(decode=True) or b""
        return payload.decode("utf-8", errors="replace")


def _parse_date(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        parsed = parsedate_to_datetime(str(raw))
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
