"""Error taxonomy for the decoding pipelines.

Leaf components raise these; pipeline boundaries turn them into
``DecodeResult.failure(str(exc))`` so callers always get a status/message pair.
"""


class DecoderError(Exception):
    """Base class for every failure a decode attempt can report."""

    kind = "DecoderError"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.kind}: {self.detail}"


class InvalidURLError(DecoderError):
    kind = "InvalidURL"


class InvalidFormatError(DecoderError):
    kind = "InvalidFormat"


class Base64DecodeError(DecoderError):
    kind = "Base64Error"


class NetworkError(DecoderError):
    kind = "NetworkError"


class HttpStatusError(DecoderError):
    kind = "HttpStatusError"

    def __init__(self, detail: str, status_code: int):
        super().__init__(detail)
        self.status_code = status_code


class ResponseFormatError(DecoderError):
    kind = "ResponseFormatError"


class ResponseStructureError(DecoderError):
    """Nested JSON in an RPC response did not have the expected shape."""

    kind = "ResponseStructureError"

    def __init__(self, detail: str, level: str):
        super().__init__(f"{level}: {detail}")
        self.level = level


class SignatureNotFoundError(DecoderError):
    kind = "SignatureNotFound"


class TimestampNotFoundError(DecoderError):
    kind = "TimestampNotFound"


class ConfigurationError(Exception):
    """The transport could not be built. Raised before any URL is touched."""
