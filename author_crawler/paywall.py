from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Sequence

from . import selectors as sel
from .models import (
    PAYWALL_CONTENT_TRUNCATION,
    PAYWALL_LOGIN_REQUIRED,
    PAYWALL_MEMBER_ONLY,
    PAYWALL_PREMIUM,
    PAYWALL_SUBSCRIPTION_PROMPT,
    PAYWALL_UNKNOWN,
    PaywallIndicator,
    PaywallOutcome,
    PaywallResult,
)

logger = logging.getLogger("author_crawler")

# Highest precedence first.
TYPE_PRECEDENCE = (
    PAYWALL_PREMIUM,
    PAYWALL_MEMBER_ONLY,
    PAYWALL_SUBSCRIPTION_PROMPT,
    PAYWALL_LOGIN_REQUIRED,
    PAYWALL_CONTENT_TRUNCATION,
)

TRUNCATION_THRESHOLD = 500
MIN_PARTIAL_CONTENT = 100


def resolve_type(indicators: Sequence[Optional[PaywallIndicator]]) -> Optional[str]:
    """Most specific paywall type among the non-null indicators, or None."""
    present = {i.type for i in indicators if i is not None}
    if not present:
        return None
    for paywall_type in TYPE_PRECEDENCE:
        if paywall_type in present:
            return paywall_type
    return PAYWALL_UNKNOWN


def confidence(indicators: Sequence[Optional[PaywallIndicator]]) -> float:
    return min(0.25 * sum(1 for i in indicators if i is not None), 1.0)


def build_result(indicators: Sequence[Optional[PaywallIndicator]]) -> PaywallResult:
    paywall_type = resolve_type(indicators)
    if paywall_type is None:
        return PaywallResult.none()
    return PaywallResult(
        has_paywall=True,
        type=paywall_type,
        indicators=tuple(indicators),
        confidence=confidence(indicators),
    )


class PaywallDetector:
    """Five independent checks against the live page, run concurrently.

    A check that fails for any reason contributes a null indicator. Handling
    resolves every branch to a PaywallOutcome and never raises.
    """

    def __init__(self, truncation_threshold: int = TRUNCATION_THRESHOLD, settle_ms: int = 1000) -> None:
        self._threshold = truncation_threshold
        self._settle_ms = settle_ms

    async def detect(self, page: Any) -> PaywallResult:
        indicators = await asyncio.gather(
            self._guard(self._visible(page, sel.PAYWALL_PREMIUM, PAYWALL_PREMIUM)),
            self._guard(self._visible(page, sel.PAYWALL_MEMBER_ONLY, PAYWALL_MEMBER_ONLY)),
            self._guard(self._visible(page, sel.PAYWALL_SUBSCRIPTION, PAYWALL_SUBSCRIPTION_PROMPT)),
            self._guard(self._truncation(page)),
            self._guard(self._visible(page, sel.PAYWALL_LOGIN, PAYWALL_LOGIN_REQUIRED)),
        )
        result = build_result(indicators)
        if result.has_paywall:
            logger.info("Paywall detected on %s: %s (confidence %.2f)", page.url, result.type, result.confidence)
        return result

    async def handle(self, page: Any, result: PaywallResult) -> PaywallOutcome:
        try:
            if result.type in (PAYWALL_PREMIUM, PAYWALL_MEMBER_ONLY):
                return await self._extract_ungated(page, result.type)
            if result.type == PAYWALL_SUBSCRIPTION_PROMPT:
                return await self._dismiss_prompt(page)
            if result.type == PAYWALL_LOGIN_REQUIRED:
                return await self._public_content(page)
            return PaywallOutcome(success=False, reason=f"No handler for paywall type {result.type!r}")
        except Exception as exc:  # noqa: BLE001
            logger.warning("Paywall handling failed on %s: %s", page.url, exc)
            return PaywallOutcome(success=False, reason=str(exc) or type(exc).__name__)

    async def _guard(self, check) -> Optional[PaywallIndicator]:
        try:
            return await check
        except Exception as exc:  # noqa: BLE001
            logger.debug("Paywall check failed: %s", exc)
            return None

    async def _visible(self, page: Any, selectors: Sequence[str], paywall_type: str) -> Optional[PaywallIndicator]:
        for selector in selectors:
            element = await page.query_selector(selector)
            if element is None or not await element.is_visible():
                continue
            text = await element.text_content() or ""
            return PaywallIndicator(type=paywall_type, selector=selector, detail=text.strip()[:200])
        return None

    async def _truncation(self, page: Any) -> Optional[PaywallIndicator]:
        length = await page.evaluate(sel.MAIN_TEXT_LENGTH_JS)
        if isinstance(length, (int, float)) and length < self._threshold:
            return PaywallIndicator(
                type=PAYWALL_CONTENT_TRUNCATION,
                detail=f"content length {int(length)} below {self._threshold}",
            )
        return None

    async def _extract_ungated(self, page: Any, paywall_type: str) -> PaywallOutcome:
        if paywall_type == PAYWALL_MEMBER_ONLY:
            content = await page.evaluate(sel.ACCESSIBLE_CONTENT_JS)
            method = "accessible_content_extraction"
        else:
            content = await page.evaluate(sel.PARTIAL_CONTENT_JS)
            method = "partial_content_extraction"
        if content and len(content.strip()) > MIN_PARTIAL_CONTENT:
            return PaywallOutcome(success=True, method=method, content=content.strip())
        return PaywallOutcome(success=False, method=method, reason="No accessible content before the paywall")

    async def _dismiss_prompt(self, page: Any) -> PaywallOutcome:
        for selector in sel.PAYWALL_DISMISS:
            button = await page.query_selector(selector)
            if button is None or not await button.is_visible():
                continue
            await button.click()
            await page.wait_for_timeout(self._settle_ms)
            content = await page.evaluate(sel.PARTIAL_CONTENT_JS)
            if content:
                return PaywallOutcome(success=True, method="prompt_dismissal", content=content.strip())
        return PaywallOutcome(success=False, method="prompt_dismissal", reason="Could not dismiss subscription prompt")

    async def _public_content(self, page: Any) -> PaywallOutcome:
        content = await page.evaluate(sel.PARTIAL_CONTENT_JS)
        if content:
            return PaywallOutcome(
                success=True,
                method="public_content_extraction",
                content=content.strip(),
                reason="Login required; only public content extracted",
            )
        return PaywallOutcome(
            success=False,
            method="public_content_extraction",
            reason="Login required and no public content available",
        )
