"""Batch decoding: offline decode for everything, one RPC call for the rest."""

from loguru import logger

from gnewsdecoder.errors import DecoderError
from gnewsdecoder.models import DecodeResult
from gnewsdecoder.services.binary import decode_token, needs_rpc
from gnewsdecoder.services.extractor import extract_token
from gnewsdecoder.services.rpc import RpcResolver


class BatchCoordinator:
    """Resolves a list of URLs with at most one network round-trip."""

    def __init__(self, rpc: RpcResolver):
        self.rpc = rpc

    async def decode(self, source_urls: list[str]) -> list[DecodeResult]:
        """
        Decode ``source_urls``, returning one result per input, in input order.

        URLs whose token decodes offline are resolved immediately. The rest are
        sent together in a single batched RPC call. A failed batch marks only
        the pending URLs as failed.
        """
        results: list[DecodeResult | None] = [None] * len(source_urls)
        pending: dict[str, list[int]] = {}

        for index, source_url in enumerate(source_urls):
            try:
                token = extract_token(source_url)
                decoded = decode_token(token)
            except DecoderError as e:
                results[index] = DecodeResult.failure(str(e))
                continue

            if needs_rpc(decoded):
                pending.setdefault(token, []).append(index)
            elif decoded:
                results[index] = DecodeResult.success(decoded)
            else:
                results[index] = DecodeResult.failure("InvalidFormat: token decoded to an empty payload")

        logger.info(
            f"Batch decode: {len(source_urls) - sum(len(v) for v in pending.values())} settled offline, "
            f"{len(pending)} tokens pending RPC"
        )

        if pending:
            await self._resolve_pending(pending, results)

        return results

    async def _resolve_pending(
        self, pending: dict[str, list[int]], results: list[DecodeResult | None]
    ) -> None:
        tokens = list(pending)
        try:
            batch = await self.rpc.resolve_many(tokens)
        except DecoderError as e:
            logger.error(f"Batch RPC failed for {len(tokens)} tokens: {e}")
            failure = DecodeResult.failure(f"batch execute failed: {e}")
            for indices in pending.values():
                for index in indices:
                    results[index] = failure
            return

        for position, decoded_url in zip(batch.positions, batch.urls):
            if not 0 <= position < len(tokens):
                logger.warning(f"Batch RPC answered unknown position {position + 1}, ignoring")
                continue
            if not decoded_url:
                continue
            for index in pending[tokens[position]]:
                if results[index] is None:
                    results[index] = DecodeResult.success(decoded_url)

        for position, token in enumerate(tokens):
            for index in pending[token]:
                if results[index] is None:
                    results[index] = DecodeResult.failure(
                        f"ResponseFormatError: batch response had no entry for position {position + 1}"
                    )
