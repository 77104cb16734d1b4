# rangeblock/core/ranges/parser.py
import json
import logging
from typing import Any, Union

from pydantic import ValidationError

from schemas.ranges import RangeDocument
from utils.exceptions import DecodeError

logger = logging.getLogger(f"rangeblock.{__name__}")


def parse_document(payload: Union[bytes, str, dict, Any]) -> RangeDocument:
    """
    Decode a published range list into a RangeDocument.

    Args:
        payload: Raw JSON (bytes or str) or an already-decoded JSON object.
    Returns:
        RangeDocument: The decoded document. CIDR texts are not validated here.
    Raises:
        DecodeError: If the payload is not JSON or does not have the document shape.
    """
    if isinstance(payload, (bytes, bytearray, str)):
        try:
            payload = json.loads(payload)
        except (ValueError, UnicodeDecodeError) as e:
            raise DecodeError(f"Range document is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise DecodeError(f"Range document must be a JSON object, got {type(payload).__name__}")

    try:
        document = RangeDocument.model_validate(payload)
    except ValidationError as e:
        raise DecodeError(f"Range document has an unexpected shape: {e.error_count()} error(s)") from e

    logger.debug(f"Parsed range document syncToken={document.sync_token} "
                 f"with {len(document.prefixes)} IPv4 and {len(document.ipv6_prefixes)} IPv6 entries")
    return document
