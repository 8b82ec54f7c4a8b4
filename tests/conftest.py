import httpx
import pytest

from gnewsdecoder.config import DecoderConfig
from gnewsdecoder.decoder import GoogleDecoder
from gnewsdecoder.services.binary import build_token


@pytest.fixture
def opaque_tokens():
    """Three distinct synthetic tokens that decode to AU_yqL references."""
    return [build_token(f"AU_yqL{name}") for name in ("first", "second", "third")]


@pytest.fixture
def make_decoder():
    """Build a GoogleDecoder whose client answers through ``handler``."""

    def _make(handler):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return GoogleDecoder(DecoderConfig(client=client))

    return _make


@pytest.fixture
def offline_handler():
    """Handler that fails the test if any request is made."""

    def handler(request):
        raise AssertionError(f"unexpected request to {request.url}")

    return handler
