"""
Resolution of ``AU_yqL`` references through the batchexecute RPC.

The endpoint answers with loosely framed text rather than clean JSON, so
results are located by scanning for the escaped ``garturlres`` marker.
"""

import json
import re

import httpx
from loguru import logger

from gnewsdecoder.errors import HttpStatusError, NetworkError, ResponseFormatError
from gnewsdecoder.models import BatchDecodeResult

BATCH_EXECUTE_URL = "https://news.google.com/_/DotsSplashUi/data/batchexecute"
RPC_ID = "Fbv4je"
RPC_URL = f"{BATCH_EXECUTE_URL}?rpcids={RPC_ID}"

RPC_HEADERS = {
    "Content-Type": "application/x-www-form-urlencoded;charset=utf-8",
    "Referer": "https://news.google.com/",
}

# Locale/region block the aggregator expects in front of the token.
GARTURL_CONTEXT = (
    '[["en-US","US",["FINANCE_TOP_INDICES","WEB_TEST_1_0_0"],'
    'null,null,1,1,"US:en",null,180,null,null,null,null,null,0,null,null,[1608992183,723341000]],'
    '"en-US","US",1,[2,3,4,8],1,0,"655000234",0,0,null,0]'
)

GARTURL_HEADER = r'[\"garturlres\",\"'
GARTURL_FOOTER = r'\",'
ENVELOPE_TAG = re.compile(r',"(\d+)"\]')


def _garturl_request(token: str) -> str:
    return f'["garturlreq",{GARTURL_CONTEXT},{json.dumps(token)}]'


def _encode(envelopes: list) -> str:
    return json.dumps([envelopes], separators=(",", ":"))


def build_single_request(token: str) -> str:
    """``f.req`` value for one token, tagged ``generic``."""
    return _encode([[RPC_ID, _garturl_request(token), None, "generic"]])


def build_batch_request(tokens: list[str]) -> str:
    """``f.req`` value with one envelope per token, tagged with its 1-based position."""
    return _encode(
        [[RPC_ID, _garturl_request(token), None, str(i)] for i, token in enumerate(tokens, 1)]
    )


def parse_single_response(text: str) -> str:
    """Return the first ``garturlres`` URL in ``text``."""
    if GARTURL_HEADER not in text:
        raise ResponseFormatError("garturlres marker not found in RPC response")

    _, _, start = text.partition(GARTURL_HEADER)
    if GARTURL_FOOTER not in start:
        raise ResponseFormatError("unterminated garturlres value in RPC response")

    return start.partition(GARTURL_FOOTER)[0]


def parse_batch_response(text: str) -> BatchDecodeResult:
    """
    Collect every ``garturlres`` URL in ``text``.

    Each entry is matched back to its submission slot through the envelope tag
    echoed after it. If any entry lacks a tag, the order of appearance is used
    for all of them.
    """
    entries: list[tuple[int | None, str]] = []
    remaining = text
    while GARTURL_HEADER in remaining:
        _, _, start = remaining.partition(GARTURL_HEADER)
        if GARTURL_FOOTER not in start:
            break
        url, _, remaining = start.partition(GARTURL_FOOTER)

        own_segment = remaining.partition(GARTURL_HEADER)[0]
        match = ENVELOPE_TAG.search(own_segment)
        entries.append((int(match.group(1)) - 1 if match else None, url))

    if not entries:
        raise ResponseFormatError("garturlres marker not found in batch RPC response")

    if any(position is None for position, _ in entries):
        logger.debug("Batch response carries no envelope tags, falling back to order of appearance")
        entries = [(i, url) for i, (_, url) in enumerate(entries)]

    entries.sort(key=lambda entry: entry[0])
    return BatchDecodeResult(
        status=True,
        positions=[position for position, _ in entries],
        urls=[url for _, url in entries],
    )


class RpcResolver:
    """Single and batched ``garturlreq`` calls over an injected client."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def _post(self, f_req: str, phase: str) -> str:
        try:
            response = await self.client.post(RPC_URL, data={"f.req": f_req}, headers=RPC_HEADERS)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NetworkError(f"{phase} request failed: {e!r}") from e

        if response.status_code != 200:
            raise HttpStatusError(
                f"{phase} failed to fetch data from Google, status: {response.status_code}",
                status_code=response.status_code,
            )
        return response.text

    async def resolve(self, token: str) -> str:
        """
        Resolve one token whose payload is an ``AU_yqL`` reference.

        Raises:
            NetworkError, HttpStatusError, ResponseFormatError
        """
        logger.debug(f"RPC resolve for token {token[:24]}...")
        text = await self._post(build_single_request(token), "batchexecute")
        return parse_single_response(text)

    async def resolve_many(self, tokens: list[str]) -> BatchDecodeResult:
        """
        Resolve several tokens with a single POST.

        Raises:
            NetworkError, HttpStatusError, ResponseFormatError
        """
        if not tokens:
            return BatchDecodeResult(status=True)

        logger.debug(f"Batched RPC resolve for {len(tokens)} tokens")
        text = await self._post(build_batch_request(tokens), "batched batchexecute")
        result = parse_batch_response(text)

        if len(result.urls) != len(tokens):
            logger.warning(
                f"Batch RPC returned {len(result.urls)} URLs for {len(tokens)} tokens"
            )
        return result
