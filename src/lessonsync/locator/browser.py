"""Headless browser automation locating the latest lesson video.

Logs into the source site, opens the newest lesson record and reads the
embedded video source together with the cookies needed to fetch it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Protocol
from urllib.parse import urljoin

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from lessonsync.core.config import DEFAULT_BROWSER_TIMEOUT, DEFAULT_SITE_URL
from lessonsync.core.errors import AutomationError, describe_exception
from lessonsync.core.types import UNKNOWN_CANONICAL_NAME, AssetDescriptor, SiteCredentials

if TYPE_CHECKING:
    from playwright.sync_api import Page

logger = logging.getLogger(__name__)

LOGIN_FORM_DELAY_MS = 750

# Page text markers
LOGIN_TEXT = "로그인"
MY_CLASS_TEXT = "내수업"
RECORD_TEXT = "수업기록"
DEFAULT_LABEL = RECORD_TEXT

_CLICKABLE = "button, a, [role='button'], input[type='button'], input[type='submit']"

_CLICK_BY_TEXT_JS = """
({text, preferLast, selector}) => {
    const labelOf = (el) => (el instanceof HTMLInputElement ? el.value : (el.textContent || ""));
    const matches = Array.from(document.querySelectorAll(selector)).filter(
        (el) => labelOf(el).replace(/\\s+/g, " ").trim().includes(text)
    );
    if (matches.length === 0) return false;
    matches[preferLast ? matches.length - 1 : 0].click();
    return true;
}
"""

_FILL_LOGIN_FORM_JS = """
({username, password}) => {
    const visible = Array.from(document.querySelectorAll("input")).filter((input) => {
        const style = window.getComputedStyle(input);
        return style.display !== "none" && style.visibility !== "hidden"
            && !input.disabled && input.type.toLowerCase() !== "hidden";
    });
    const passwordInput = visible.find((input) => input.type.toLowerCase() === "password");
    const usernameInput = visible.find((input) => {
        if (input === passwordInput) return false;
        const type = input.type.toLowerCase();
        const hint = `${input.placeholder || ""} ${input.name || ""} ${input.id || ""}`.toLowerCase();
        return ["text", "email", "tel", "number"].includes(type)
            || ["아이디", "id", "이메일", "email"].some((word) => hint.includes(word));
    });
    if (!usernameInput || !passwordInput) return false;
    const assign = (input, value) => {
        input.focus();
        input.value = value;
        input.dispatchEvent(new Event("input", {bubbles: true}));
        input.dispatchEvent(new Event("change", {bubbles: true}));
    };
    assign(usernameInput, username);
    assign(passwordInput, password);
    return true;
}
"""

_WAIT_FOR_TEXT_JS = "(text) => !!document.body && document.body.innerText.includes(text)"

_OPEN_LATEST_RECORD_JS = """
({recordText, selector, defaultLabel}) => {
    const heading = Array.from(document.querySelectorAll(".bold_label")).find(
        (el) => (el.textContent || "").trim().startsWith(recordText)
    );
    if (!heading) return null;
    let table = heading.nextElementSibling;
    while (table && table.tagName !== "TABLE") table = table.nextElementSibling;
    if (!table) return null;

    const candidates = [];
    for (const el of table.querySelectorAll(selector)) {
        const label = (el instanceof HTMLInputElement ? el.value : (el.textContent || ""))
            .replace(/\\s+/g, " ").trim();
        if (!label.includes("확인하기") && !label.includes("확인완료")) continue;
        const row = el.closest("tr");
        const top = el.getBoundingClientRect().top;
        candidates.push({
            el,
            top: Number.isFinite(top) ? top : Number.MAX_SAFE_INTEGER,
            text: ((row && row.textContent) || "").replace(/\\s+/g, " ").trim(),
        });
    }
    if (candidates.length === 0) return null;
    candidates.sort((a, b) => a.top - b.top);
    candidates[0].el.click();
    return {label: candidates[0].text.slice(0, 120) || defaultLabel};
}
"""

_VIDEO_SOURCE_JS = """
() => {
    const source = document.querySelector("video source");
    return source ? {src: source.getAttribute("src"), pageUrl: window.location.href} : null;
}
"""


class AssetLocator(Protocol):
    """Produces the descriptor of the asset to transfer."""

    def locate(self, credentials: SiteCredentials) -> AssetDescriptor:
        """Locate the asset, raising AutomationError on failure."""
        ...


def build_cookie_header(cookies: Iterable[Mapping[str, Any]]) -> str:
    """Join browser cookies into a Cookie request header value."""
    return "; ".join(f"{cookie['name']}={cookie['value']}" for cookie in cookies)


class BrowserAssetLocator:
    """Locates the latest lesson video with a Chromium browser."""

    def __init__(
        self,
        site_url: str = DEFAULT_SITE_URL,
        headless: bool = True,
        timeout: float = DEFAULT_BROWSER_TIMEOUT,
    ) -> None:
        """Initialize the locator.

        Args:
            site_url: Landing page of the source site.
            headless: Whether to run the browser without a window.
            timeout: Wait limit for page markers, in seconds.
        """
        self._site_url = site_url
        self._headless = headless
        self._timeout_ms = timeout * 1000

    def locate(self, credentials: SiteCredentials) -> AssetDescriptor:
        """Launch a browser and locate the latest lesson video.

        Raises:
            AutomationError: Tagged with the page interaction that failed.
        """
        try:
            with sync_playwright() as playwright:
                browser = playwright.chromium.launch(headless=self._headless)
                logger.debug("[browser] Browser launched")
                try:
                    return self.locate_on_page(browser.new_page(), credentials)
                finally:
                    browser.close()
                    logger.debug("[browser] Browser closed")
        except AutomationError:
            raise
        except PlaywrightError as e:
            raise AutomationError("fetch-latest-lesson-video", describe_exception(e)) from e

    def locate_on_page(self, page: Page, credentials: SiteCredentials) -> AssetDescriptor:
        """Run the page interactions on an already open page."""
        page.goto(self._site_url, wait_until="domcontentloaded")
        logger.info(f"[navigation] Loaded {self._site_url}")

        if not self._click_by_text(page, LOGIN_TEXT):
            raise AutomationError(
                "click-login-button",
                f"Failed to locate {LOGIN_TEXT} button on the landing page",
            )

        page.wait_for_timeout(LOGIN_FORM_DELAY_MS)
        filled = page.evaluate(
            _FILL_LOGIN_FORM_JS,
            {"username": credentials.username, "password": credentials.password},
        )
        if not filled:
            raise AutomationError(
                "fill-login-form", "Failed to locate username/password login fields"
            )
        logger.info("[login] Filled login form")

        if not self._click_by_text(page, LOGIN_TEXT, prefer_last=True):
            page.keyboard.press("Enter")

        self._wait_for_text(page, MY_CLASS_TEXT)
        logger.info(f"[login] Logged in, {MY_CLASS_TEXT} is visible")

        if not self._click_by_text(page, MY_CLASS_TEXT):
            raise AutomationError("click-my-class", f"Failed to locate {MY_CLASS_TEXT} tab")
        self._wait_for_text(page, RECORD_TEXT)

        record = page.evaluate(
            _OPEN_LATEST_RECORD_JS,
            {"recordText": RECORD_TEXT, "selector": _CLICKABLE, "defaultLabel": DEFAULT_LABEL},
        )
        if not record:
            raise AutomationError(
                "open-latest-record", f"Failed to locate the latest {RECORD_TEXT} entry"
            )
        label = record["label"]
        logger.info(f"[record] Opened latest record: {label}")

        try:
            page.wait_for_selector("video source", state="attached", timeout=self._timeout_ms)
        except PlaywrightTimeoutError as e:
            raise AutomationError(
                "extract-video-source", "Timed out waiting for a video source tag"
            ) from e
        source = page.evaluate(_VIDEO_SOURCE_JS)
        if not source or not source.get("src"):
            raise AutomationError(
                "extract-video-source", "video source tag exists but src is missing"
            )

        video_url = urljoin(source["pageUrl"], source["src"])
        cookies = page.context.cookies(video_url)
        asset = AssetDescriptor.from_label(
            label,
            source_url=video_url,
            referer_url=source["pageUrl"],
            cookie_header=build_cookie_header(cookies),
        )
        logger.info(
            f"[video] Extracted video source {video_url} "
            f"({len(cookies)} cookies, name={asset.canonical_name})"
        )
        if asset.canonical_name == UNKNOWN_CANONICAL_NAME:
            logger.warning(
                f"[video] No date in label {label!r}; "
                f"using fallback name {UNKNOWN_CANONICAL_NAME!r}"
            )
        return asset

    def _click_by_text(self, page: Page, text: str, prefer_last: bool = False) -> bool:
        return bool(
            page.evaluate(
                _CLICK_BY_TEXT_JS,
                {"text": text, "preferLast": prefer_last, "selector": _CLICKABLE},
            )
        )

    def _wait_for_text(self, page: Page, text: str) -> None:
        try:
            page.wait_for_function(_WAIT_FOR_TEXT_JS, arg=text, timeout=self._timeout_ms)
        except PlaywrightTimeoutError as e:
            raise AutomationError(
                "wait-for-text", f"Timed out waiting for {text!r} to appear"
            ) from e
