"""HTTP probe — UP when a URL answers with the expected status (and body)."""

from __future__ import annotations

import logging

import httpx

from healthagg.health.status import Health

logger = logging.getLogger(__name__)

# Reported as ``code`` when no response was received at all
BAD_REQUEST = 400


class URLChecker:
    """Requests ``url`` and compares the response against expectations.

    ``expect_status_code`` of 0 means 200. The body check is disabled when
    ``expect_body_contains`` is empty.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        method: str = "GET",
        expect_body_contains: str = "",
        expect_status_code: int = 200,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.method = method or "GET"
        self.expect_body_contains = expect_body_contains
        self.expect_status_code = expect_status_code or 200

    def check(self) -> Health:
        health = Health()
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.request(self.method, self.url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("URL check %s %s failed: %s", self.method, self.url, e)
            return health.set_down().add_info("code", BAD_REQUEST).add_info("error", str(e) or type(e).__name__)

        if resp.status_code != self.expect_status_code:
            return (
                health.set_down()
                .add_info("code", resp.status_code)
                .add_info("expected_code", self.expect_status_code)
            )

        health.set_up().add_info("code", resp.status_code)

        if self.expect_body_contains and self.expect_body_contains not in resp.text:
            health.set_down().add_info("body", f"does not contain: {self.expect_body_contains}")

        return health
