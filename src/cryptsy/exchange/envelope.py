"""
Response envelope parsing.

Every Cryptsy response is a JSON object of the form::

    {"success": "1" | "0", "return": <payload>, "error": <message>}

``parse_envelope`` separates the three outcomes a caller must tell apart: a
body that is not a usable envelope, a failure reported by the exchange, and a
success carrying the payload.
"""

import json
import logging
from decimal import Decimal
from typing import Any

from .exceptions import (
    ApplicationFailureError,
    MalformedResponseError,
    MissingSuccessFieldError,
)

logger = logging.getLogger(__name__)

FIELD_SUCCESS = "success"
FIELD_ERROR = "error"
FIELD_RETURN = "return"

SUCCESS_VALUE = "1"


def parse_envelope(raw: bytes) -> Any:
    """
    Extract the payload from a raw response body.

    Args:
        raw: Response body bytes.

    Returns:
        The value under ``return``. ``None`` when the exchange sent no payload.

    Raises:
        MalformedResponseError: If the body is not a JSON object.
        MissingSuccessFieldError: If the object has no ``success`` field.
        ApplicationFailureError: If ``success`` is anything but ``"1"``.
    """
    try:
        document = json.loads(raw, parse_float=Decimal)
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedResponseError(
            message=f"Could not parse response: {str(e)}",
            details={'body_length': len(raw)}
        ) from e

    if not isinstance(document, dict):
        raise MalformedResponseError(
            message=f"Expected a JSON object, got {type(document).__name__}"
        )

    if FIELD_SUCCESS not in document:
        raise MissingSuccessFieldError()

    if str(document[FIELD_SUCCESS]) != SUCCESS_VALUE:
        server_message = document.get(FIELD_ERROR)
        if server_message is not None:
            server_message = str(server_message)
        logger.debug(f"Exchange reported failure: {server_message}")
        raise ApplicationFailureError(server_message=server_message)

    return document.get(FIELD_RETURN)
