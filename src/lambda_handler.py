"""Main Lambda handler for the AWS RSS Discord notifier."""

import json
import os
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import boto3
from botocore.exceptions import ClientError

from .config import Config
from .discord import WebhookPublisher
from .formatter import NotificationFormatter
from .freshness import REASON_UNPARSABLE, FreshnessFilter
from .limiter import DeliveryLimiter
from .logging_config import create_execution_logger, setup_structured_logging
from .rss import FeedProcessor
from .sequencer import DeliverySequencer

# Setup structured logging
setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"))

METRICS_NAMESPACE = "AWS-RSS-Discord"


def _empty_metrics() -> dict[str, Any]:
    return {
        "items_found": 0,
        "items_qualified": 0,
        "items_rejected": 0,
        "items_unparsable": 0,
        "items_truncated": 0,
        "truncated": False,
        "messages_attempted": 0,
        "messages_sent": 0,
        "messages_failed": 0,
        "fetch_failed": False,
        "errors": [],
        "delivery": None,
    }


def run_check(
    config: Config,
    webhook_url: str,
    execution_id: str,
    now: datetime | None = None,
    feed_processor: FeedProcessor | None = None,
    publisher: WebhookPublisher | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> dict[str, Any]:
    """
    Run one fetch, filter, limit and deliver pass.

    Args:
        config: Loaded configuration
        webhook_url: Resolved Discord webhook URL
        execution_id: Execution ID for logging context
        now: Reference time for the freshness window, captured once
        feed_processor: Feed provider, built from config when omitted
        publisher: Destination sink, built from config when omitted
        sleep: Pause primitive used between deliveries

    Returns:
        Metrics dictionary describing the run
    """
    logger = create_execution_logger("main", execution_id)
    metrics = _empty_metrics()
    delivery_config = config.get_delivery_config()

    feed_processor = feed_processor or FeedProcessor(
        timeout=config.feed_timeout, execution_id=execution_id
    )

    try:
        items = feed_processor.parse_feed(config.feed_url)
    except Exception as e:
        error_msg = f"Failed to process feed {config.feed_url}: {e}"
        logger.error(error_msg, feed_url=config.feed_url, error=str(e))
        metrics["fetch_failed"] = True
        metrics["errors"].append(error_msg)
        return metrics

    now = now or datetime.now(UTC)
    metrics["items_found"] = len(items)
    logger.log_feed_processing(config.feed_url, len(items))

    decisions = FreshnessFilter(delivery_config.window, execution_id).evaluate(
        items, now
    )
    fresh_items = [decision.item for decision in decisions if decision.qualifies]
    metrics["items_qualified"] = len(fresh_items)
    metrics["items_rejected"] = len(decisions) - len(fresh_items)
    metrics["items_unparsable"] = sum(
        1 for decision in decisions if decision.reason == REASON_UNPARSABLE
    )

    limited = DeliveryLimiter(delivery_config.max_items, execution_id).limit(
        fresh_items
    )
    metrics["truncated"] = limited.truncated
    metrics["items_truncated"] = limited.dropped_count

    if not limited.batch:
        logger.info(
            "No qualifying items found for Discord delivery",
            window_minutes=delivery_config.window_minutes,
        )
        return metrics

    publisher = publisher or WebhookPublisher(
        config.get_webhook_config(webhook_url), execution_id=execution_id
    )
    sequencer = DeliverySequencer(
        publisher,
        NotificationFormatter(),
        pace_seconds=delivery_config.pace_seconds,
        thread_id=config.thread_id,
        sleep=sleep,
        execution_id=execution_id,
    )
    report = sequencer.deliver(limited.batch)

    metrics["messages_attempted"] = report.attempted
    metrics["messages_sent"] = report.succeeded
    metrics["messages_failed"] = report.failed
    metrics["delivery"] = report.to_dict()
    for failure in report.failures:
        metrics["errors"].append(
            f"Failed to deliver item {failure.index} '{failure.title}': {failure.error}"
        )

    return metrics


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Lambda entry point for both the scheduled and the manual trigger.

    Args:
        event: Lambda event data
        context: Lambda context object

    Returns:
        Response dictionary with status and metrics
    """
    execution_id = f"lambda_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    main_logger = create_execution_logger("main", execution_id)

    trigger = "schedule" if (event or {}).get("source") == "aws.events" else "manual"
    main_logger.log_execution_start(
        trigger=trigger,
        lambda_request_id=getattr(context, "aws_request_id", "unknown"),
        lambda_function_name=getattr(context, "function_name", "unknown"),
    )

    metrics = _empty_metrics()
    config = None

    try:
        config = Config()
        main_logger.info(
            "Configuration initialized",
            feed_url=config.feed_url,
            window_minutes=config.window_minutes,
            max_items=config.max_items,
            pace_seconds=config.pace_seconds,
        )

        schedule = config.get_schedule_config()
        if schedule.leaves_gap(config.window_minutes):
            main_logger.warning(
                f"Freshness window ({config.window_minutes} min) is shorter than the "
                f"schedule interval ({schedule.interval_minutes} min); items published "
                "between runs may never be delivered",
                window_minutes=config.window_minutes,
                interval_minutes=schedule.interval_minutes,
            )

        webhook_url = config.webhook_url
        if not webhook_url and config.webhook_secret_name:
            webhook_url = get_webhook_url(
                config.webhook_secret_name, config.aws_region, execution_id
            )
        if not webhook_url:
            raise ValueError(
                "Discord webhook URL is not configured "
                "(set DISCORD_WEBHOOK_URL or WEBHOOK_SECRET_NAME)"
            )

        metrics = run_check(config, webhook_url, execution_id)

        main_logger.log_metrics(metrics)
        if config.metrics_enabled:
            send_cloudwatch_metrics(metrics, config.aws_region, execution_id)

        success = not metrics["errors"]
        main_logger.log_execution_end(success=success, metrics=metrics)

        return {
            "statusCode": 200,
            "body": json.dumps(
                {
                    "message": "AWS RSS Discord check completed",
                    "execution_id": execution_id,
                    "trigger": trigger,
                    "metrics": metrics,
                }
            ),
        }

    except Exception as e:
        error_msg = f"Critical error in Lambda handler: {e}"
        main_logger.exception(error_msg, error=str(e))
        metrics["errors"].append(error_msg)

        if config is not None and config.metrics_enabled:
            send_cloudwatch_metrics(metrics, config.aws_region, execution_id)

        main_logger.log_execution_end(success=False, metrics=metrics)

        return {
            "statusCode": 500,
            "body": json.dumps(
                {
                    "message": "AWS RSS Discord check failed",
                    "execution_id": execution_id,
                    "trigger": trigger,
                    "error": error_msg,
                    "metrics": metrics,
                }
            ),
        }


def get_webhook_url(secret_name: str, aws_region: str, execution_id: str) -> str:
    """
    Retrieve the Discord webhook URL from AWS Secrets Manager.

    The secret may be a plain string or a JSON object. The webhook URL
    carries the webhook token, so its value is never logged.

    Args:
        secret_name: Name of the secret in Secrets Manager
        aws_region: AWS region for Secrets Manager client
        execution_id: Execution ID for logging context

    Returns:
        Webhook URL

    Raises:
        ValueError: If the secret name or region is empty
        RuntimeError: If the secret cannot be retrieved or has no usable value
    """
    secrets_logger = create_execution_logger("secrets_manager", execution_id)

    if not secret_name or not secret_name.strip():
        raise ValueError("Secret name cannot be empty")

    if not aws_region or not aws_region.strip():
        raise ValueError("AWS region cannot be empty")

    try:
        secrets_logger.info(
            f"Retrieving webhook configuration from Secrets Manager: {secret_name}"
        )
        secrets_client = boto3.client("secretsmanager", region_name=aws_region)

        response = secrets_client.get_secret_value(SecretId=secret_name)

        if "SecretString" not in response:
            raise ValueError(f"Secret {secret_name} does not contain a string value")

        secret_value = response["SecretString"]

        if not secret_value or not secret_value.strip():
            raise ValueError(f"Secret {secret_name} contains empty value")

        try:
            secret_data = json.loads(secret_value)
        except json.JSONDecodeError:
            secrets_logger.info(
                "Successfully retrieved configuration from plain text secret"
            )
            return secret_value.strip()

        if not isinstance(secret_data, dict):
            raise ValueError(f"JSON secret {secret_name} must be an object")

        for key in ["webhook_url", "discord_webhook_url", "url"]:
            value = secret_data.get(key)
            if isinstance(value, str) and value.strip():
                secrets_logger.info(
                    "Successfully retrieved configuration from JSON secret"
                )
                return value.strip()

        raise ValueError(f"No webhook URL found in JSON secret {secret_name}")

    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        secrets_logger.error(
            f"AWS Secrets Manager error retrieving {secret_name}: {error_code}"
        )
        raise RuntimeError(f"Failed to retrieve secret {secret_name}") from e
    except ValueError as e:
        secrets_logger.error(f"Invalid secret format for {secret_name}: {e}")
        raise RuntimeError(f"Invalid secret format for {secret_name}") from e


def send_cloudwatch_metrics(
    metrics: dict[str, Any], aws_region: str, execution_id: str
) -> None:
    """
    Send custom metrics to CloudWatch.

    Args:
        metrics: Dictionary containing execution metrics
        aws_region: AWS region for CloudWatch client
        execution_id: Execution ID for logging context
    """
    metrics_logger = create_execution_logger("cloudwatch_metrics", execution_id)

    try:
        metrics_logger.info("Sending metrics to CloudWatch", metrics=metrics)
        cloudwatch = boto3.client("cloudwatch", region_name=aws_region)

        total_errors = len(metrics["errors"])
        execution_success = total_errors == 0
        status = "Success" if execution_success else "Failure"

        counts = [
            ("ItemsFound", metrics["items_found"]),
            ("ItemsQualified", metrics["items_qualified"]),
            ("ItemsTruncated", metrics["items_truncated"]),
            ("MessagesAttempted", metrics["messages_attempted"]),
            ("MessagesSent", metrics["messages_sent"]),
            ("MessagesFailed", metrics["messages_failed"]),
            ("Errors", total_errors),
        ]
        metric_data = [
            {
                "MetricName": name,
                "Value": value,
                "Unit": "Count",
                "Dimensions": [{"Name": "ExecutionId", "Value": execution_id}],
            }
            for name, value in counts
        ]
        metric_data += [
            {
                "MetricName": "ExecutionSuccess",
                "Value": 1 if execution_success else 0,
                "Unit": "Count",
                "Dimensions": [{"Name": "Status", "Value": status}],
            },
            {
                "MetricName": "ExecutionFailure",
                "Value": 0 if execution_success else 1,
                "Unit": "Count",
                "Dimensions": [{"Name": "Status", "Value": status}],
            },
            {
                "MetricName": "DeliverySuccessRate",
                "Value": (
                    metrics["messages_sent"] / max(metrics["messages_attempted"], 1)
                )
                * 100,
                "Unit": "Percent",
                "Dimensions": [{"Name": "ExecutionId", "Value": execution_id}],
            },
        ]

        # CloudWatch accepts at most 20 metrics per call
        batch_size = 20
        for i in range(0, len(metric_data), batch_size):
            batch = metric_data[i : i + batch_size]
            cloudwatch.put_metric_data(Namespace=METRICS_NAMESPACE, MetricData=batch)
            metrics_logger.debug(f"Sent batch of {len(batch)} metrics to CloudWatch")

        metrics_logger.info(
            "Successfully sent metrics to CloudWatch",
            metrics_sent=len(metric_data),
            namespace=METRICS_NAMESPACE,
            execution_success=execution_success,
        )

    except Exception as e:
        metrics_logger.error(f"Failed to send CloudWatch metrics: {e}", error=str(e))
