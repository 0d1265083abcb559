"""AWS Lambda handler for both API Gateway and EventBridge events.

A single Lambda entry point handles:
1. API Gateway requests (via Mangum ASGI adapter for FastAPI)
2. EventBridge ImportJobCreated events (runs the import pipeline)
"""

import asyncio
import logging
import os
from typing import Any

from mangum import Mangum

from lambda_dependencies import get_event_handler, get_fastapi_app, initialize_lambda_environment

logger = logging.getLogger(__name__)

# Initialize during cold start (skipped in test mode)
if os.getenv("ENVIRONMENT") != "test":
    initialize_lambda_environment()
    app = get_fastapi_app()
    mangum_handler = Mangum(app, lifespan="off")
else:
    app = None  # type: ignore
    mangum_handler = None  # type: ignore


def is_eventbridge_event(event: dict[str, Any]) -> bool:
    """Return True for EventBridge payloads (API Gateway events carry requestContext instead)."""
    return "source" in event and "detail-type" in event and "detail" in event


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Route an invocation to the EventBridge handler or to FastAPI via Mangum.

    Args:
        event: The Lambda event payload (EventBridge or API Gateway)
        context: The Lambda context object

    Returns:
        Response dict with statusCode and body
    """
    logger.info(f"Received Lambda invocation, request_id: {getattr(context, 'aws_request_id', None)}")

    try:
        if is_eventbridge_event(event):
            logger.info(f"Processing EventBridge event: {event.get('source')} - {event.get('detail-type')}")
            return handle_eventbridge_event(event)

        logger.info("Processing API Gateway request via Mangum")
        result: dict[str, Any] = mangum_handler(event, context)
        return result

    except Exception as e:
        logger.exception(f"Unhandled error in Lambda handler: {e}")
        return {"statusCode": 500, "body": "Internal server error"}


def handle_eventbridge_event(event: dict[str, Any]) -> dict[str, Any]:
    """Run the import pipeline for an ImportJobCreated event."""
    response: dict[str, Any] = asyncio.run(get_event_handler().handle_eventbridge_event(event))
    return response
