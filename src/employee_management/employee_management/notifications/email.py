from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.exceptions import DependencyError

logger = logging.getLogger(__name__)


class EmailDispatcher(Protocol):
    def send(self, *, to_address: str, subject: str, html_body: str) -> None:
        raise NotImplementedError


class LoggingEmailDispatcher(EmailDispatcher):
    """Development backend: records outgoing mail in the log instead of sending it."""

    def __init__(self):
        self.sent: list[dict[str, str]] = []

    def send(self, *, to_address: str, subject: str, html_body: str) -> None:
        self.sent.append({"to": to_address, "subject": subject, "html": html_body})
        logger.info("Email (log backend) to=%s subject=%r", to_address, subject)


class SesEmailDispatcher(EmailDispatcher):
    """AWS SES backend."""

    def __init__(self, *, region: str, from_address: str, client: Optional[Any] = None):
        if not region or not from_address:
            raise DependencyError("AWS_REGION and AWS_SES_FROM_EMAIL are required for the SES email backend")
        self._from = from_address
        # Credentials come from the standard AWS chain (env vars, profile, instance role).
        self._client = client or boto3.client("ses", region_name=region)

    def send(self, *, to_address: str, subject: str, html_body: str) -> None:
        try:
            resp = self._client.send_email(
                Source=self._from,
                Destination={"ToAddresses": [to_address]},
                Message={
                    "Subject": {"Data": subject, "Charset": "UTF-8"},
                    "Body": {"Html": {"Data": html_body, "Charset": "UTF-8"}},
                },
            )
        except (BotoCoreError, ClientError) as e:
            raise DependencyError(f"SES send to {to_address} failed: {e}") from e
        logger.info("SES send_email ok: MessageId=%s", resp.get("MessageId"))


def build_email_dispatcher(backend: str, *, region: str = "", from_address: str = "") -> EmailDispatcher:
    backend = (backend or "log").lower()
    if backend == "ses":
        return SesEmailDispatcher(region=region, from_address=from_address)
    if backend == "log":
        return LoggingEmailDispatcher()
    raise ValueError(f"Unknown EMAIL_BACKEND: {backend!r}")
