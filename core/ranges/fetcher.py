# rangeblock/core/ranges/fetcher.py
import logging
from typing import Optional, Union

import requests

from schemas.ranges import RangeDocument, DEFAULT_SOURCE_URL
from utils.exceptions import FetchError, TransportError, DecodeError
from .parser import parse_document

logger = logging.getLogger(f"rangeblock.{__name__}")

DEFAULT_TIMEOUT_SECONDS = 10.0


class FetchResult:
    """A freshly downloaded document and the validator that came with it."""
    __slots__ = ("document", "validator")

    def __init__(self, document: RangeDocument, validator: str):
        self.document = document
        self.validator = validator

    def __repr__(self) -> str:
        return f"FetchResult(sync_token={self.document.sync_token!r}, validator={self.validator!r})"


class NotModified:
    """The remote document is unchanged since `validator` was issued."""
    __slots__ = ("validator",)

    def __init__(self, validator: str):
        self.validator = validator

    def __repr__(self) -> str:
        return f"NotModified(validator={self.validator!r})"


class RangeFetcher:
    """
    Conditional GET of the published range list.
    The transport session is injected and owned by the caller.
    """
    def __init__(self,
                 session: requests.Session,
                 url: str = DEFAULT_SOURCE_URL,
                 timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self._session = session
        self.url = url
        self.timeout = timeout

    def fetch(self, validator: Optional[str] = None) -> Union[FetchResult, NotModified]:
        """
        Fetch the document, sending `validator` as If-None-Match when non-empty.

        Returns:
            FetchResult with the decoded document and the response's ETag, or
            NotModified with the (possibly refreshed) validator.
        Raises:
            TransportError: connection failure, timeout or unexpected status.
            DecodeError: the body is not a range document.
        """
        headers = {"Accept": "application/json"}
        if validator:
            headers["If-None-Match"] = validator

        try:
            response = self._session.get(self.url, headers=headers, timeout=self.timeout, stream=True)
        except requests.RequestException as e:
            raise TransportError(f"Request to {self.url} failed: {e}", url=self.url) from e

        try:
            new_validator = response.headers.get("ETag", "")

            if response.status_code == requests.codes.not_modified:
                logger.debug(f"Range document at {self.url} not modified (ETag {validator})")
                return NotModified(new_validator or validator or "")

            if not 200 <= response.status_code < 300:
                raise TransportError(
                    f"Unexpected status {response.status_code} from {self.url}",
                    url=self.url,
                    status_code=response.status_code,
                )

            try:
                body = response.content
            except requests.RequestException as e:
                raise TransportError(f"Reading response body from {self.url} failed: {e}", url=self.url) from e

            try:
                document = parse_document(body)
            except DecodeError as e:
                e.url = self.url
                raise

            logger.info(f"Fetched range document syncToken={document.sync_token} "
                        f"createDate={document.create_date} ETag={new_validator}")
            return FetchResult(document, new_validator)
        finally:
            response.close()


__all__ = ["RangeFetcher", "FetchResult", "NotModified", "FetchError", "TransportError", "DecodeError"]
