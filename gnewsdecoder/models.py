"""Result values handed back by every decoding pipeline."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DecodeResult(BaseModel):
    """Outcome of one resolution attempt.

    ``decoded_url`` is set on success, ``message`` on failure.
    """

    model_config = ConfigDict(frozen=True)

    status: bool
    decoded_url: Optional[str] = None
    message: Optional[str] = None

    @model_validator(mode="after")
    def check_payload(self) -> "DecodeResult":
        if self.status and not self.decoded_url:
            raise ValueError("successful DecodeResult needs a decoded_url")
        if not self.status and not self.message:
            raise ValueError("failed DecodeResult needs a message")
        return self

    @classmethod
    def success(cls, decoded_url: str) -> "DecodeResult":
        return cls(status=True, decoded_url=decoded_url)

    @classmethod
    def failure(cls, message: str) -> "DecodeResult":
        return cls(status=False, message=message)


class DecodingParams(BaseModel):
    """Signature/timestamp pair scraped from an article page."""

    model_config = ConfigDict(frozen=True)

    status: bool
    signature: Optional[str] = None
    timestamp: Optional[str] = None
    token: Optional[str] = None
    message: Optional[str] = None


class BatchDecodeResult(BaseModel):
    """Unpacked response of one batched RPC call.

    ``positions[i]`` is the 0-based submission index that ``urls[i]`` answers.
    """

    model_config = ConfigDict(frozen=True)

    status: bool
    urls: list[str] = Field(default_factory=list)
    positions: list[int] = Field(default_factory=list)
    error: Optional[str] = None

    @model_validator(mode="after")
    def check_alignment(self) -> "BatchDecodeResult":
        if len(self.urls) != len(self.positions):
            raise ValueError("urls and positions must have the same length")
        return self
