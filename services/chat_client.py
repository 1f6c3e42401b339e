import httpx
from core.config import settings


class ChatWebhookClient:
    """Slack-compatible incoming webhook ({"text": ...} body)."""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout if timeout is not None else settings.NOTIFY_TIMEOUT_SECONDS
        self.headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def post_message(self, webhook_url: str, text: str) -> None:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            r = await client.post(webhook_url, headers=self.headers, json={"text": text})
            r.raise_for_status()
