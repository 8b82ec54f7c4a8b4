"""Bounded-concurrency fan-out of the single-URL pipeline."""

import asyncio
from typing import TYPE_CHECKING

from loguru import logger

from gnewsdecoder.config import DEFAULT_CONCURRENCY
from gnewsdecoder.models import DecodeResult

if TYPE_CHECKING:
    from gnewsdecoder.decoder import GoogleDecoder

CANCELLED_MESSAGE = "context cancelled"


class ConcurrentDecoder:
    """Runs ``GoogleDecoder.decode`` over many URLs, at most ``concurrency`` at a time."""

    def __init__(self, decoder: "GoogleDecoder", concurrency: int = DEFAULT_CONCURRENCY):
        if concurrency <= 0:
            concurrency = DEFAULT_CONCURRENCY
        self.decoder = decoder
        self.concurrency = concurrency

    async def decode_urls(
        self, source_urls: list[str], interval: float | None = None
    ) -> list[DecodeResult]:
        """Decode every URL; results line up with ``source_urls``."""
        return await self._run(source_urls, interval, cancel=None)

    async def decode_urls_with_cancel(
        self,
        source_urls: list[str],
        cancel: asyncio.Event,
        interval: float | None = None,
    ) -> list[DecodeResult]:
        """
        Like :meth:`decode_urls`, but stops starting new work once ``cancel`` is set.

        URLs still waiting for a slot get a ``context cancelled`` failure.
        Requests already in flight run to completion.
        """
        return await self._run(source_urls, interval, cancel=cancel)

    async def _run(
        self,
        source_urls: list[str],
        interval: float | None,
        cancel: asyncio.Event | None,
    ) -> list[DecodeResult]:
        semaphore = asyncio.Semaphore(self.concurrency)

        async def decode_with_limit(source_url: str) -> DecodeResult:
            if not await self._acquire(semaphore, cancel):
                return DecodeResult.failure(CANCELLED_MESSAGE)
            try:
                return await self.decoder.decode(source_url, interval=interval)
            finally:
                semaphore.release()

        logger.info(
            f"Starting concurrent decode of {len(source_urls)} URLs with concurrency={self.concurrency}"
        )
        outcomes = await asyncio.gather(
            *[decode_with_limit(url) for url in source_urls],
            return_exceptions=True,
        )

        results = []
        for source_url, outcome in zip(source_urls, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"Decode of {source_url} raised: {outcome!r}")
                outcome = DecodeResult.failure(f"unexpected error: {outcome!r}")
            results.append(outcome)

        failed = sum(1 for result in results if not result.status)
        logger.info(f"Concurrent decode complete: {len(results) - failed} decoded, {failed} failed")
        return results

    @staticmethod
    async def _acquire(semaphore: asyncio.Semaphore, cancel: asyncio.Event | None) -> bool:
        """Take a slot, or return False if cancellation wins the race."""
        if cancel is None:
            await semaphore.acquire()
            return True
        if cancel.is_set():
            return False

        acquire = asyncio.ensure_future(semaphore.acquire())
        cancelled = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait({acquire, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (acquire, cancelled):
                if not task.done():
                    task.cancel()

        if acquire in done:
            if cancel.is_set():
                semaphore.release()
                return False
            return True
        return False
