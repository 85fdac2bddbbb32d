import logging
from typing import List, Optional, Protocol, Sequence, Union

import httpx

from leadflow.core.config import settings

logger = logging.getLogger(__name__)

Recipients = Union[str, Sequence[str]]


def _as_list(to: Recipients) -> List[str]:
    if isinstance(to, str):
        return [to]
    return list(to)


class EmailSender(Protocol):
    """Outbound email capability.

    ``send`` returns ``True`` only when the provider confirmed the
    message; it never raises for delivery problems.
    """

    async def send(self, to: Recipients, subject: str, body: str) -> bool: ...


class HttpEmailSender:
    """Sends mail through a Resend-compatible JSON HTTP API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        sender: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.EMAIL_API_KEY
        self._api_url = api_url if api_url is not None else settings.EMAIL_API_URL
        self._sender = sender if sender is not None else settings.EMAIL_FROM
        self._timeout = timeout if timeout is not None else settings.EMAIL_TIMEOUT_SECONDS
        self._client = client

    async def send(self, to: Recipients, subject: str, body: str) -> bool:
        recipients = _as_list(to)
        if not recipients:
            logger.warning("Email '%s' has no recipients; not sent", subject)
            return False

        payload = {
            "from": self._sender,
            "to": recipients,
            "subject": subject,
            "text": body,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            if self._client is not None:
                response = await self._client.post(
                    self._api_url, json=payload, headers=headers
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(
                        self._api_url, json=payload, headers=headers
                    )
            response.raise_for_status()
        except httpx.TimeoutException:
            logger.error("Email API timed out sending '%s' to %s", subject, recipients)
            return False
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Email API returned %s for '%s': %s",
                exc.response.status_code,
                subject,
                exc.response.text,
            )
            return False
        except httpx.HTTPError as exc:
            logger.error("Email API unreachable for '%s': %s", subject, exc)
            return False

        logger.info("Email '%s' sent to %s", subject, recipients)
        return True


class LoggingEmailSender:
    """Stand-in used when no email API key is configured.

    Logs each message and reports it as not delivered, so reminder
    flags stay unset until a real sender is configured.
    """

    async def send(self, to: Recipients, subject: str, body: str) -> bool:
        logger.warning(
            "Email delivery not configured; dropping '%s' to %s", subject, _as_list(to)
        )
        return False


def build_email_sender() -> EmailSender:
    """Return the sender matching the current settings."""
    if settings.EMAIL_API_KEY:
        return HttpEmailSender()
    return LoggingEmailSender()
