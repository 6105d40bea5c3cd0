"""Async Slack client for webhook and bot-token delivery."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

import httpx

from pr_radar.config import PRRadarConfig
from pr_radar.exceptions import SlackDeliveryError
from pr_radar.formatter import format_pr_alert_message
from pr_radar.models import BatchSendResult, Organization, PRAlertData

logger = logging.getLogger(__name__)

_SLACK_API_URL = "https://slack.com/api"


class SlackClient:
    """Deliver messages through a bot token and channel, or an incoming webhook.

    The bot API is preferred when both a token and a channel are set.
    """

    def __init__(
        self,
        webhook_url: str | None = None,
        bot_token: str | None = None,
        channel: str | None = None,
        config: PRRadarConfig | None = None,
        base_url: str = _SLACK_API_URL,
    ) -> None:
        self.webhook_url = webhook_url
        self.bot_token = bot_token
        self.channel = channel
        self._base_url = base_url.rstrip("/")
        self._config = config if config is not None else PRRadarConfig()
        self._client = httpx.AsyncClient(timeout=self._config.http.timeout_seconds)

    @classmethod
    def from_organization(
        cls, org: Organization, config: PRRadarConfig | None = None
    ) -> SlackClient:
        return cls(
            webhook_url=org.slack_webhook_url,
            bot_token=org.slack_bot_token,
            channel=org.slack_channel,
            config=config,
        )

    async def __aenter__(self) -> SlackClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self._client.aclose()

    async def close(self) -> None:
        await self._client.aclose()

    async def send_message(self, message: dict[str, Any]) -> None:
        """Send a Block Kit message.

        Raises:
            SlackDeliveryError: If neither delivery route is configured, the
                request fails, or Slack rejects the message.
        """
        try:
            if self.bot_token and self.channel:
                await self._post_bot_message(message)
            elif self.webhook_url:
                await self._post_webhook(self.webhook_url, message)
            else:
                raise SlackDeliveryError("No Slack webhook URL or bot token configured")
        except httpx.HTTPError as exc:
            raise SlackDeliveryError(f"Slack request failed: {exc}") from exc

    async def _post_webhook(self, url: str, message: dict[str, Any]) -> None:
        response = await self._client.post(url, json=message)
        if response.status_code != 200:
            raise SlackDeliveryError(
                f"Webhook request failed: {response.text}",
                status_code=response.status_code,
            )
        # incoming webhooks answer with the literal body "ok"
        if response.text != "ok":
            raise SlackDeliveryError(f"Webhook returned: {response.text}")

    async def _post_bot_message(self, message: dict[str, Any]) -> None:
        response = await self._client.post(
            f"{self._base_url}/chat.postMessage",
            json={**message, "channel": self.channel},
            headers={"Authorization": f"Bearer {self.bot_token}"},
        )
        if response.status_code != 200:
            raise SlackDeliveryError(
                f"Slack API request failed with {response.status_code}",
                status_code=response.status_code,
            )
        data = response.json()
        if not data.get("ok"):
            raise SlackDeliveryError(f"Slack API error: {data.get('error', 'unknown')}")

    async def send_pr_alert(self, alert: PRAlertData) -> None:
        await self.send_message(format_pr_alert_message(alert))

    async def send_pr_alerts(
        self,
        alerts: Sequence[PRAlertData],
        delay_ms: int = 500,
        max_alerts: int | None = None,
    ) -> BatchSendResult:
        """Send alerts one at a time, pausing *delay_ms* between sends.

        Failures are collected rather than raised.
        """
        if max_alerts is not None:
            alerts = alerts[:max_alerts]

        result = BatchSendResult()
        for index, alert in enumerate(alerts):
            if index and delay_ms:
                await asyncio.sleep(delay_ms / 1000)
            try:
                await self.send_pr_alert(alert)
            except SlackDeliveryError as exc:
                logger.error(
                    "Failed to send PR alert for %s#%d: %s", alert.repo, alert.number, exc
                )
                result.failed += 1
                result.errors.append(
                    f"Failed to send PR alert for {alert.repo}#{alert.number}: {exc}"
                )
            else:
                result.sent += 1
        return result
