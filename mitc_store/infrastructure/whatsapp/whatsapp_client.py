"""
WhatsApp Web Driver - Browser Automation for Outbound Messages
===============================================================

Opens web.whatsapp.com/send?phone=...&text=... so WhatsApp pre-fills the
chat, then presses ENTER in the message box. The Chrome profile directory
keeps the session, so the QR code only has to be scanned once per machine.
"""

import logging
import random
import time
from pathlib import Path
from urllib.parse import quote

from selenium import webdriver
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.chrome.service import Service as ChromeService
from selenium.webdriver.common.by import By
from selenium.webdriver.common.keys import Keys
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait
from webdriver_manager.chrome import ChromeDriverManager

logger = logging.getLogger(__name__)

WHATSAPP_WEB_URL = "https://web.whatsapp.com/"
PROFILE_DIR = "whatsapp_profile"

CHAT_LIST = (By.CSS_SELECTOR, 'div[contenteditable="true"][data-tab="3"]')
COMPOSE_BOX = (By.CSS_SELECTOR, 'footer div[contenteditable="true"][data-tab="10"]')

# Lower-cased page text that means the account is restricted
BLOCK_PHRASES = (
    "temporarily banned",
    "account is temporarily",
    "verify your phone",
    "unusual activity",
)


class WhatsAppClientError(Exception):
    """WhatsApp Web could not be driven."""
    pass


class WhatsAppBlockedError(WhatsAppClientError):
    """WhatsApp shows a ban or verification screen; stop sending."""
    pass


def _human_pause(low: float, high: float) -> None:
    time.sleep(random.uniform(low, high))


def build_chrome(headless: bool, profile_dir: str = PROFILE_DIR) -> webdriver.Chrome:
    """Chrome with a persistent profile and a driver fetched by webdriver-manager."""
    options = webdriver.ChromeOptions()
    if headless:
        # No visible window means no QR scan: only works with an existing session
        options.add_argument("--headless=new")
    else:
        options.add_argument("--start-maximized")

    for flag in ("--disable-gpu", "--no-sandbox", "--disable-dev-shm-usage"):
        options.add_argument(flag)

    profile = Path(profile_dir).resolve()
    options.add_argument(f"--user-data-dir={profile}")
    logger.info(f"Chrome profile: {profile} (headless={headless})")

    return webdriver.Chrome(service=ChromeService(ChromeDriverManager().install()), options=options)


class WhatsAppClient:
    """
    One logged-in WhatsApp Web tab.

    Usage:
        client = WhatsAppClient()
        if client.wait_for_login(timeout=120):
            client.send_to("919876543210", "Hi Asif, ...")
        client.close()
    """

    def __init__(self, headless: bool = False, chat_timeout: int = 30, profile_dir: str = PROFILE_DIR):
        self._chat_timeout = chat_timeout
        self.driver = build_chrome(headless, profile_dir)
        self.driver.get(WHATSAPP_WEB_URL)
        logger.info("WhatsApp Web opened, scan the QR code if it is shown")

    def _raise_if_blocked(self) -> None:
        page = self.driver.page_source.lower()
        hit = next((phrase for phrase in BLOCK_PHRASES if phrase in page), None)
        if hit:
            logger.error(f"WhatsApp restriction screen detected: '{hit}'")
            raise WhatsAppBlockedError(f"WhatsApp account restricted: {hit}")

    def wait_for_login(self, timeout: int = 120) -> bool:
        """Block until the chat list appears (QR scanned) or the timeout passes."""
        logger.info(f"Waiting for WhatsApp Web login ({timeout}s)")
        try:
            WebDriverWait(self.driver, timeout).until(EC.presence_of_element_located(CHAT_LIST))
        except TimeoutException:
            logger.error(f"WhatsApp Web login not completed within {timeout}s")
            return False

        logger.info("WhatsApp Web ready")
        return True

    def send_to(self, phone: str, text: str) -> bool:
        """
        Send text to an international number (digits only).

        Returns False when the chat could not be opened, e.g. the number
        is not on WhatsApp. Raises WhatsAppBlockedError on a restriction screen.
        """
        self._raise_if_blocked()

        try:
            self.driver.get(f"{WHATSAPP_WEB_URL}send?phone={phone}&text={quote(text)}")
            compose = WebDriverWait(self.driver, self._chat_timeout).until(
                EC.element_to_be_clickable(COMPOSE_BOX)
            )
        except TimeoutException:
            logger.warning(f"No chat opened for {phone}, number may not be on WhatsApp")
            return False
        except WebDriverException as e:
            logger.exception(f"Browser error while opening chat for {phone}: {e}")
            return False

        _human_pause(0.5, 1.5)
        compose.send_keys(Keys.ENTER)
        _human_pause(1.0, 2.0)

        logger.info(f"Message sent to {phone}: {text[:50]}...")
        return True

    def close(self) -> None:
        try:
            self.driver.quit()
        except WebDriverException as e:
            logger.warning(f"Browser did not quit cleanly: {e}")
        else:
            logger.info("Browser closed")
