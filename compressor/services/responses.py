from typing import Any, Dict, Optional, Tuple, Union
import json
import logging
from ..core.errors import ValidationError
from ..core.models import ErrorResponse
from .batch import parse_request, process_batch

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal Server Error"


def internal_error(e: Exception) -> Tuple[int, Dict[str, Any]]:
    return 500, ErrorResponse(message=INTERNAL_ERROR_MESSAGE, error=str(e)).model_dump()


def build_response(payload: Any) -> Tuple[int, Dict[str, Any]]:
    """Run a batch request and shape the outcome as (status, body).

    Validation problems are the caller's fault (400); anything that goes
    wrong once processing has started is reported uniformly as a 500
    carrying the underlying message.
    """
    try:
        request = parse_request(payload)
    except ValidationError as e:
        return 400, ErrorResponse(message=str(e)).model_dump(exclude_none=True)

    try:
        result = process_batch(request)
    except Exception as e:
        logger.error("Error processing images: %s", e)
        return internal_error(e)
    return 200, result.model_dump(by_alias=True, exclude_none=True)


def build_raw_response(raw: Optional[Union[str, bytes]]) -> Tuple[int, Dict[str, Any]]:
    """Same as `build_response`, starting from the undecoded request body.

    An empty body counts as a request without files; a body that is not
    JSON is a 500, the same on every entry point.
    """
    if not raw:
        return build_response(None)
    try:
        payload = json.loads(raw)
    except ValueError as e:
        logger.error("Unreadable request body: %s", e)
        return internal_error(e)
    return build_response(payload)
