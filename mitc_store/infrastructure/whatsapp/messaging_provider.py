"""
Messaging Providers - Delivery Backends for Warranty Messages
=============================================================

Provides a unified interface for sending rendered warranty messages.
This system only renders text; a provider delivers it.

USAGE:
    # Selenium (WhatsApp Web, needs a QR scan)
    provider = SeleniumProvider()
    provider.connect()
    provider.send_message("9876543210", "Hello!")

    # WhatsApp Cloud API
    provider = CloudAPIProvider(api_token="EAAx...", phone_number_id="12345")
    provider.connect()
    provider.send_message("9876543210", "Hello!")

Phones are the 10-digit local numbers stored on customers; providers add
the country code. send_message returns False when the message was not
accepted and raises BackendError when the transport itself fails.
"""

import logging
from abc import ABC, abstractmethod

import requests
from selenium.common.exceptions import WebDriverException

from ...domain.errors import BackendError
from ...domain.formatters import international_phone
from ..config import WhatsAppSettings, get_settings

logger = logging.getLogger(__name__)


class MessagingProvider(ABC):
    """
    Delivery backend for rendered messages.
    Subclasses add a transport; the campaign only sees this interface.
    """

    @abstractmethod
    def connect(self, **kwargs) -> bool:
        """Open the transport. False when it is not ready to send."""
        ...

    @abstractmethod
    def is_connected(self) -> bool:
        """True once connect() succeeded and until close()."""
        ...

    @abstractmethod
    def send_message(self, phone: str, text: str) -> bool:
        """Deliver text to a local number. False when it was not accepted."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Clean up resources."""
        ...


class SeleniumProvider(MessagingProvider):
    """
    WhatsApp Web driven through a real Chrome window.
    Wraps WhatsAppClient; the operator scans the QR code once per profile.
    """

    def __init__(self, settings: WhatsAppSettings = None):
        self._settings = settings or get_settings().whatsapp
        self._client = None
        self._connected = False

    def connect(self, **kwargs) -> bool:
        """Launch browser, open WhatsApp Web and wait for login."""
        from .whatsapp_client import WhatsAppClient

        try:
            self._client = WhatsAppClient(headless=self._settings.headless)
        except Exception as e:
            logger.exception(f"Could not start Chrome for WhatsApp Web: {e}")
            raise BackendError(f"Failed to launch WhatsApp Web: {e}") from e

        timeout = kwargs.get("timeout", self._settings.login_timeout)
        self._connected = self._client.wait_for_login(timeout=timeout)
        return self._connected

    def is_connected(self) -> bool:
        return self._connected and self._client is not None

    def send_message(self, phone: str, text: str) -> bool:
        """Open the chat for the number with the text pre-filled and send it."""
        if not self.is_connected():
            logger.error("SeleniumProvider: not connected")
            return False

        from .whatsapp_client import WhatsAppClientError

        try:
            return self._client.send_to(international_phone(phone, self._settings.country_code), text)
        except (WhatsAppClientError, WebDriverException) as e:
            logger.exception(f"SeleniumProvider: send to {phone} failed: {e}")
            raise BackendError(f"WhatsApp Web send failed: {e}") from e

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None
            self._connected = False


class CloudAPIProvider(MessagingProvider):
    """
    WhatsApp Cloud API provider.

    Configuration needed:
        - api_token: WhatsApp Business API access token
        - phone_number_id: registered WhatsApp phone number ID
        - api_url: Graph API base URL (from WhatsAppSettings)
    """

    def __init__(
        self,
        api_token: str = "",
        phone_number_id: str = "",
        settings: WhatsAppSettings = None,
        session: requests.Session = None,
    ):
        self._settings = settings or get_settings().whatsapp
        self._api_token = api_token or self._settings.api_token
        self._phone_number_id = phone_number_id or self._settings.phone_number_id
        self._api_url = self._settings.api_url
        self._session = session or requests.Session()
        self._connected = False

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._api_token}",
            "Content-Type": "application/json",
        }

    def connect(self, **kwargs) -> bool:
        """Verify API credentials with a lookup of the sender number."""
        if not self._api_token or not self._phone_number_id:
            logger.error("CloudAPIProvider: api_token and phone_number_id are required")
            return False

        try:
            response = self._session.get(
                f"{self._api_url}/{self._phone_number_id}",
                headers=self._headers(),
                timeout=self._settings.timeout_seconds,
            )
        except requests.RequestException as e:
            logger.exception(f"CloudAPIProvider: credential check failed: {e}")
            raise BackendError(f"WhatsApp Cloud API unreachable: {e}") from e

        self._connected = response.ok
        if not response.ok:
            logger.error(f"CloudAPIProvider: credential check returned {response.status_code}")
        return self._connected

    def is_connected(self) -> bool:
        return self._connected

    def send_message(self, phone: str, text: str) -> bool:
        """POST {api_url}/{phone_number_id}/messages with a text body."""
        if not self._connected:
            logger.error("CloudAPIProvider: not connected")
            return False

        payload = {
            "messaging_product": "whatsapp",
            "to": international_phone(phone, self._settings.country_code),
            "type": "text",
            "text": {"body": text},
        }

        try:
            response = self._session.post(
                f"{self._api_url}/{self._phone_number_id}/messages",
                headers=self._headers(),
                json=payload,
                timeout=self._settings.timeout_seconds,
            )
        except requests.RequestException as e:
            logger.exception(f"CloudAPIProvider: send to {phone} failed: {e}")
            raise BackendError(f"WhatsApp Cloud API unreachable: {e}") from e

        if not response.ok:
            logger.error(f"CloudAPIProvider: send to {phone} rejected ({response.status_code}): {response.text[:200]}")
            return False

        logger.info(f"CloudAPIProvider: sent message to {phone}")
        return True

    def close(self) -> None:
        self._session.close()
        self._connected = False
        logger.info("CloudAPIProvider: closed")


def create_provider(settings: WhatsAppSettings = None) -> MessagingProvider:
    """Build the provider selected by WHATSAPP_PROVIDER."""
    settings = settings or get_settings().whatsapp
    if settings.provider == "cloud_api":
        return CloudAPIProvider(settings=settings)
    if settings.provider == "selenium":
        return SeleniumProvider(settings=settings)
    raise ValueError(f"Unknown WhatsApp provider: {settings.provider}")
