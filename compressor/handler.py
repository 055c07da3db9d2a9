import base64
import binascii
import json
import logging
from .core.config import settings
from .core.logging import configure_logging
from .services.responses import build_raw_response, build_response, internal_error

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


def handler(event, context):
    """Function-invocation entry point (API Gateway proxy event).

    `event["body"]` carries the JSON batch request, base64-encoded when
    `isBase64Encoded` is set. Returns the proxy response dict.
    """
    raw = event.get("body")
    if raw is not None and not isinstance(raw, (str, bytes)):
        # direct invocations may pass the request object itself
        return _proxy_response(*build_response(raw))

    if raw and event.get("isBase64Encoded"):
        try:
            raw = base64.b64decode(raw)
        except (binascii.Error, ValueError) as e:
            logger.error("Unreadable request body: %s", e)
            return _proxy_response(*internal_error(e))

    return _proxy_response(*build_raw_response(raw))


def _proxy_response(status: int, body: dict) -> dict:
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }
