"""
Signature-based resolution, the path that works for every token.

Phase 1 scrapes a signature/timestamp pair from the article page (falling
back to the RSS article page). Phase 2 posts them with the token to the
batchexecute endpoint and unpacks the nested JSON answer.
"""

import json
import re

import httpx
from loguru import logger

from gnewsdecoder.errors import (
    DecoderError,
    HttpStatusError,
    NetworkError,
    ResponseStructureError,
    SignatureNotFoundError,
    TimestampNotFoundError,
)
from gnewsdecoder.models import DecodingParams
from gnewsdecoder.services.rpc import BATCH_EXECUTE_URL, RPC_ID

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/129.0.0.0 Safari/537.36"
)
ARTICLE_PAGE_URL = "https://news.google.com/articles/{token}"
RSS_ARTICLE_PAGE_URL = "https://news.google.com/rss/articles/{token}"

SIGNATURE_PATTERN = re.compile(r'data-n-a-sg="([^"]+)"')
TIMESTAMP_PATTERN = re.compile(r'data-n-a-ts="([^"]+)"')

SIGNED_REQUEST_CONTEXT = (
    '[["X","X",["X","X"],null,null,1,1,"US:en",null,1,null,null,null,null,null,0,1],'
    '"X","X",1,[1,1,1],1,1,null,0,0,null,0]'
)


def extract_data_attributes(html: str) -> tuple[str, str]:
    """
    Find the ``data-n-a-sg`` / ``data-n-a-ts`` values anywhere in ``html``.

    Raises:
        SignatureNotFoundError, TimestampNotFoundError
    """
    signature = SIGNATURE_PATTERN.search(html)
    if not signature:
        raise SignatureNotFoundError("data-n-a-sg attribute not found in page")

    timestamp = TIMESTAMP_PATTERN.search(html)
    if not timestamp:
        raise TimestampNotFoundError("data-n-a-ts attribute not found in page")

    return signature.group(1), timestamp.group(1)


def build_signed_request(token: str, timestamp: str, signature: str) -> str:
    """``f.req`` value carrying the token with its signature/timestamp pair."""
    inner = (
        f'["garturlreq",{SIGNED_REQUEST_CONTEXT},'
        f"{json.dumps(token)},{timestamp},{json.dumps(signature)}]"
    )
    return json.dumps([[[RPC_ID, inner]]], separators=(",", ":"))


def parse_signed_response(text: str) -> str:
    """
    Dig the decoded URL out of a signed batchexecute response.

    Shape: ``)]}'`` framing line, blank line, then
    ``[["wrb.fr","Fbv4je","[\\"garturlres\\",\\"<url>\\",1]",...],...]``.

    Raises:
        ResponseStructureError: naming the nesting level that did not match
    """
    _, separator, payload = text.partition("\n\n")
    if not separator:
        raise ResponseStructureError("no blank line after the framing prefix", level="framing")

    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ResponseStructureError(f"payload is not valid JSON ({e})", level="payload") from e

    if not isinstance(parsed, list) or not parsed:
        raise ResponseStructureError("expected a non-empty array", level="payload")

    envelope = parsed[0]
    if not isinstance(envelope, list) or len(envelope) < 3:
        raise ResponseStructureError("expected an array of at least 3 elements", level="envelope")

    inner_json = envelope[2]
    if not isinstance(inner_json, str):
        raise ResponseStructureError("third element is not a JSON string", level="envelope")

    try:
        inner = json.loads(inner_json)
    except json.JSONDecodeError as e:
        raise ResponseStructureError(f"inner result is not valid JSON ({e})", level="inner") from e

    if not isinstance(inner, list) or len(inner) < 2:
        raise ResponseStructureError("expected an array of at least 2 elements", level="inner")

    decoded_url = inner[1]
    if not isinstance(decoded_url, str) or not decoded_url:
        raise ResponseStructureError("decoded URL is not a non-empty string", level="inner")

    return decoded_url


class SignatureResolver:
    """Two-phase resolver over an injected client."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def _get_page(self, url: str) -> httpx.Response:
        try:
            return await self.client.get(url, headers={"User-Agent": USER_AGENT})
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NetworkError(f"GET {url} failed: {e!r}") from e

    async def fetch_params(self, token: str) -> tuple[str, str]:
        """
        Scrape ``(signature, timestamp)`` for ``token``.

        Tries the article page first and the RSS article page second. The
        error of the second attempt is the one reported.
        """
        article_url = ARTICLE_PAGE_URL.format(token=token)
        try:
            response = await self._get_page(article_url)
            if response.status_code == 200:
                return extract_data_attributes(response.text)
            logger.debug(f"Article page returned {response.status_code}, trying RSS page")
        except DecoderError as e:
            logger.debug(f"Article page unusable ({e}), trying RSS page")

        rss_url = RSS_ARTICLE_PAGE_URL.format(token=token)
        response = await self._get_page(rss_url)
        if response.status_code != 200:
            raise HttpStatusError(
                f"RSS article page request failed with status: {response.status_code}",
                status_code=response.status_code,
            )
        return extract_data_attributes(response.text)

    async def get_decoding_params(self, token: str) -> DecodingParams:
        """Phase 1 as a result value; never raises ``DecoderError``."""
        try:
            signature, timestamp = await self.fetch_params(token)
        except DecoderError as e:
            return DecodingParams(status=False, token=token, message=f"fetching decoding params: {e}")
        return DecodingParams(status=True, signature=signature, timestamp=timestamp, token=token)

    async def resolve_with_params(self, signature: str, timestamp: str, token: str) -> str:
        """
        Phase 2: exchange the signed request for the publisher URL.

        Raises:
            NetworkError, HttpStatusError, ResponseStructureError
        """
        headers = {
            "Content-Type": "application/x-www-form-urlencoded;charset=UTF-8",
            "User-Agent": USER_AGENT,
        }
        try:
            response = await self.client.post(
                BATCH_EXECUTE_URL,
                data={"f.req": build_signed_request(token, timestamp, signature)},
                headers=headers,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NetworkError(f"signed batchexecute request failed: {e!r}") from e

        if response.status_code != 200:
            raise HttpStatusError(
                f"signed batchexecute failed with status: {response.status_code}",
                status_code=response.status_code,
            )
        return parse_signed_response(response.text)

    async def resolve(self, token: str) -> str:
        """Run both phases for ``token``."""
        signature, timestamp = await self.fetch_params(token)
        return await self.resolve_with_params(signature, timestamp, token)
