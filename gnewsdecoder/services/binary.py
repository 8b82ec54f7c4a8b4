"""
Offline decoding of the binary record carried by an article token.

Older tokens embed the publisher URL directly. Newer ones embed an opaque
``AU_yqL...`` reference that only the batchexecute RPC can resolve.

Layout (after URL-safe base64):

    08 13 22 | L [L2] | payload ... | D2 01 00
    prefix     length                 suffix
"""

import base64
import binascii

from gnewsdecoder.errors import Base64DecodeError

TOKEN_PREFIX = b"\x08\x13\x22"
TOKEN_SUFFIX = b"\xd2\x01\x00"
OPAQUE_PREFIX = "AU_yqL"


def decode_base64_token(token: str) -> bytes:
    """URL-safe base64 decode, tolerating missing padding."""
    try:
        return base64.urlsafe_b64decode(token + "==")
    except (binascii.Error, ValueError) as e:
        raise Base64DecodeError(f"failed to decode token {token[:40]!r}: {e}") from e


def strip_record(data: bytes) -> bytes:
    """
    Strip prefix and suffix, then cut the payload using the length byte.

    A buffer too short to hold the announced payload comes back unchanged
    (minus prefix/suffix). Never raises.
    """
    if data.startswith(TOKEN_PREFIX):
        data = data[len(TOKEN_PREFIX):]
    if data.endswith(TOKEN_SUFFIX):
        data = data[: -len(TOKEN_SUFFIX)]

    if not data:
        return data

    length = data[0]
    if len(data) < length + 1:
        return data
    if length >= 0x80:
        # high bit set: a second length byte follows
        return data[2 : length + 1]
    return data[1 : length + 1]


def decode_token(token: str) -> str:
    """
    Decode a token into either a publisher URL or an ``AU_yqL`` reference.

    Raises:
        Base64DecodeError: if the token is not valid base64
    """
    payload = strip_record(decode_base64_token(token))
    return payload.decode("utf-8", errors="replace")


def needs_rpc(decoded: str) -> bool:
    """True when the decoded string is an opaque reference, not a URL."""
    return decoded.startswith(OPAQUE_PREFIX)


def build_token(payload: str) -> str:
    """Encode ``payload`` using the same record layout, without padding.

    Inverse of :func:`decode_token` for payloads shorter than 128 bytes.
    """
    raw = payload.encode("utf-8")
    if len(raw) >= 0x80:
        raise ValueError("payload too long for a single length byte")
    record = TOKEN_PREFIX + bytes([len(raw)]) + raw + TOKEN_SUFFIX
    return base64.urlsafe_b64encode(record).decode("ascii").rstrip("=")
