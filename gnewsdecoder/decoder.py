"""
``GoogleDecoder``: the entry point that wires the services to one transport.

All network work is async and goes through the ``httpx.AsyncClient`` the
decoder was configured with.
"""

import asyncio

import httpx
from loguru import logger

from gnewsdecoder.config import DEFAULT_CONCURRENCY, DecoderConfig
from gnewsdecoder.errors import Base64DecodeError, ConfigurationError, DecoderError
from gnewsdecoder.models import DecodeResult, DecodingParams
from gnewsdecoder.services.batch import BatchCoordinator
from gnewsdecoder.services.binary import decode_token, needs_rpc
from gnewsdecoder.services.extractor import extract_token
from gnewsdecoder.services.pool import ConcurrentDecoder
from gnewsdecoder.services.rpc import RpcResolver
from gnewsdecoder.services.signature import SignatureResolver
from gnewsdecoder.transport import build_client


def _is_publisher_url(decoded: str) -> bool:
    return decoded.startswith(("http://", "https://"))


class GoogleDecoder:
    """Decodes Google News article URLs into publisher URLs.

    Raises ``ConfigurationError`` on construction when the proxy is unusable.
    """

    def __init__(self, config: DecoderConfig | None = None):
        self.config = config or DecoderConfig()
        self._owns_client = self.config.client is None
        self.client: httpx.AsyncClient = self.config.client or build_client(self.config)
        self.rpc = RpcResolver(self.client)
        self.signature = SignatureResolver(self.client)
        self.batch = BatchCoordinator(self.rpc)

    async def __aenter__(self) -> "GoogleDecoder":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this decoder created it."""
        if self._owns_client:
            await self.client.aclose()

    def get_base64_str(self, source_url: str) -> DecodeResult:
        """Extract the article token; it is returned in ``decoded_url``."""
        try:
            return DecodeResult.success(extract_token(source_url))
        except DecoderError as e:
            return DecodeResult.failure(str(e))

    async def get_decoding_params(self, token: str) -> DecodingParams:
        return await self.signature.get_decoding_params(token)

    async def decode_url(self, signature: str, timestamp: str, token: str) -> DecodeResult:
        """Resolve ``token`` with an already scraped signature/timestamp pair."""
        try:
            return DecodeResult.success(
                await self.signature.resolve_with_params(signature, timestamp, token)
            )
        except DecoderError as e:
            return DecodeResult.failure(f"decoding with signature: {e}")

    async def decode(self, source_url: str, interval: float | None = None) -> DecodeResult:
        """
        Decode one URL.

        Tokens that carry the publisher URL are answered offline; every other
        token goes through the signature-based resolver.

        Args:
            source_url: Google News article URL
            interval: seconds to sleep after a successful decode, to stay under rate limits

        Returns:
            DecodeResult
        """
        try:
            token = extract_token(source_url)
        except DecoderError as e:
            return DecodeResult.failure(str(e))

        result = None
        try:
            decoded = decode_token(token)
            if _is_publisher_url(decoded):
                result = DecodeResult.success(decoded)
        except Base64DecodeError as e:
            logger.debug(f"Offline decode failed ({e}), using signature resolver")

        if result is None:
            try:
                result = DecodeResult.success(await self.signature.resolve(token))
            except DecoderError as e:
                result = DecodeResult.failure(f"signature resolution failed: {e}")

        if result.status and interval:
            await asyncio.sleep(interval)
        return result

    async def decode_rpc(self, source_url: str) -> DecodeResult:
        """Offline decode, with a single RPC round-trip for ``AU_yqL`` references."""
        try:
            token = extract_token(source_url)
            decoded = decode_token(token)
        except DecoderError as e:
            return DecodeResult.failure(str(e))

        if not needs_rpc(decoded):
            if not decoded:
                return DecodeResult.failure("InvalidFormat: token decoded to an empty payload")
            return DecodeResult.success(decoded)

        try:
            return DecodeResult.success(await self.rpc.resolve(token))
        except DecoderError as e:
            return DecodeResult.failure(f"batch execute failed: {e}")

    async def decode_batch(self, source_urls: list[str]) -> list[DecodeResult]:
        return await self.batch.decode(source_urls)

    @staticmethod
    def decode_offline(source_url: str) -> str:
        """Best-effort decode without network; returns ``source_url`` on failure."""
        try:
            decoded = decode_token(extract_token(source_url))
        except DecoderError:
            return source_url
        return decoded or source_url


async def gnews_decode(
    source_url: str, interval: float | None = None, proxy: str | None = None
) -> DecodeResult:
    """Decode one URL with a throwaway decoder."""
    try:
        decoder = GoogleDecoder(DecoderConfig(proxy=proxy))
    except ConfigurationError as e:
        return DecodeResult.failure(str(e))

    async with decoder:
        return await decoder.decode(source_url, interval=interval)


async def gnews_decode_batch(source_urls: list[str], proxy: str | None = None) -> list[DecodeResult]:
    """Decode many URLs with the batched RPC pipeline.

    Raises:
        ConfigurationError: if the proxy is unusable
    """
    async with GoogleDecoder(DecoderConfig(proxy=proxy)) as decoder:
        return await decoder.decode_batch(source_urls)


async def gnews_decode_concurrent(
    source_urls: list[str],
    concurrency: int = DEFAULT_CONCURRENCY,
    interval: float | None = None,
    proxy: str | None = None,
) -> list[DecodeResult]:
    """Decode many URLs in parallel with a throwaway decoder."""
    try:
        decoder = GoogleDecoder(DecoderConfig(proxy=proxy))
    except ConfigurationError as e:
        return [DecodeResult.failure(str(e)) for _ in source_urls]

    async with decoder:
        return await ConcurrentDecoder(decoder, concurrency).decode_urls(source_urls, interval=interval)
