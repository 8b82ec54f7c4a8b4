"""Decode Google News article links into the publisher's original URLs."""

from gnewsdecoder.config import DecoderConfig
from gnewsdecoder.decoder import (
    GoogleDecoder,
    gnews_decode,
    gnews_decode_batch,
    gnews_decode_concurrent,
)
from gnewsdecoder.errors import ConfigurationError, DecoderError
from gnewsdecoder.models import BatchDecodeResult, DecodeResult, DecodingParams
from gnewsdecoder.services.pool import ConcurrentDecoder

__version__ = "0.1.0"

__all__ = [
    "BatchDecodeResult",
    "ConcurrentDecoder",
    "ConfigurationError",
    "DecodeResult",
    "DecoderConfig",
    "DecoderError",
    "DecodingParams",
    "GoogleDecoder",
    "gnews_decode",
    "gnews_decode_batch",
    "gnews_decode_concurrent",
    "__version__",
]
