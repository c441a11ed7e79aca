"""Discord webhook publisher for the AWS RSS Discord notifier."""

import json
import urllib.error
import urllib.parse
import urllib.request

from .config import WebhookConfig
from .logging_config import create_execution_logger
from .models import DeliveryResult, NotificationMessage


class WebhookPublisher:
    """Posts embed messages to a Discord webhook, one attempt per message."""

    def __init__(self, config: WebhookConfig, execution_id: str | None = None):
        """Initialize the publisher with webhook configuration."""
        if not config.webhook_url or not config.webhook_url.strip():
            raise ValueError("Discord webhook URL cannot be empty")

        self.config = config
        self.logger = create_execution_logger("webhook_publisher", execution_id)

        self.logger.info(
            "WebhookPublisher initialized",
            webhook=self.redacted_url(),
            thread_id=config.thread_id or "main channel (no thread specified)",
        )

    def redacted_url(self) -> str:
        """Webhook URL with the token path segment hidden."""
        parsed = urllib.parse.urlsplit(self.config.webhook_url)
        path = parsed.path.rsplit("/", 1)[0] + "/***"
        return f"{parsed.scheme}://{parsed.netloc}{path}"

    def build_url(self, thread_id: str | None = None) -> str:
        """Webhook URL, routed to ``thread_id`` when one is given."""
        if not thread_id:
            return self.config.webhook_url

        parsed = urllib.parse.urlsplit(self.config.webhook_url)
        query = urllib.parse.parse_qsl(parsed.query, keep_blank_values=True)
        query = [(key, value) for key, value in query if key != "thread_id"]
        query.append(("thread_id", thread_id))
        return urllib.parse.urlunsplit(
            parsed._replace(query=urllib.parse.urlencode(query))
        )

    def build_payload(self, message: NotificationMessage) -> dict:
        """Webhook body carrying the bot identity and a single embed."""
        return {
            "username": self.config.username,
            "avatar_url": self.config.avatar_url,
            "embeds": [message.to_embed()],
        }

    def send(
        self,
        message: NotificationMessage,
        index: int = 1,
        thread_id: str | None = None,
    ) -> DeliveryResult:
        """
        Deliver one message.

        Args:
            message: Embed message to post
            index: Position of the item in the batch, for reporting
            thread_id: Optional routing identifier

        Returns:
            DeliveryResult describing success or the failure reason
        """
        url = self.build_url(thread_id)
        data = json.dumps(self.build_payload(message)).encode("utf-8")

        request = urllib.request.Request(
            url,
            data=data,
            method="POST",
            headers={
                "Content-Type": "application/json",
                "User-Agent": "AWS-RSS-Discord/1.0",
            },
        )

        self.logger.debug(
            f"Posting item {index} to Discord",
            item_index=index,
            item_title=message.title,
            payload_length=len(data),
        )

        try:
            with urllib.request.urlopen(request, timeout=self.config.timeout) as response:
                status = response.status
                if 200 <= status < 300:
                    self.logger.info(
                        f"Successfully delivered to Discord: {message.title[:50]}",
                        item_index=index,
                        item_title=message.title,
                        status_code=status,
                    )
                    return DeliveryResult(
                        index=index, title=message.title, success=True, status_code=status
                    )

                body = response.read().decode("utf-8", errors="replace")
                return self._failure(index, message, f"HTTP {status}: {body}", status)

        except urllib.error.HTTPError as e:
            body = ""
            try:
                body = e.read().decode("utf-8", errors="replace")
            except Exception:
                body = str(e.reason)
            return self._failure(index, message, f"HTTP {e.code}: {body}", e.code)

        except urllib.error.URLError as e:
            return self._failure(index, message, f"URL error: {e.reason}")

        except Exception as e:
            return self._failure(
                index, message, f"Unexpected error: {type(e).__name__}: {e}"
            )

    def _failure(
        self,
        index: int,
        message: NotificationMessage,
        error: str,
        status_code: int | None = None,
    ) -> DeliveryResult:
        self.logger.error(
            f"Discord delivery failed for item {index}: {error}",
            item_index=index,
            item_title=message.title,
            status_code=status_code,
            error=error,
        )
        return DeliveryResult(
            index=index,
            title=message.title,
            success=False,
            status_code=status_code,
            error=error,
        )
