"""Token extraction from Google News article URLs."""

from urllib.parse import urlsplit

from gnewsdecoder.errors import InvalidFormatError, InvalidURLError

NEWS_HOST = "news.google.com"
ARTICLE_PATH_TYPES = ("articles", "read")


def split_path(path: str) -> list[str]:
    """Split a URL path on ``/`` dropping empty segments."""
    return [segment for segment in path.split("/") if segment]


def extract_token(source_url: str) -> str:
    """
    Pull the encoded article token out of a Google News URL.

    Accepts ``https://news.google.com/(articles|read)/<token>[?query]``, with
    any prefix before the last two path segments (``/rss/articles/...`` works).

    Args:
        source_url: Google News article URL

    Returns:
        The last path segment

    Raises:
        InvalidURLError: if the string cannot be parsed as a URL
        InvalidFormatError: if the host or path shape is wrong
    """
    if not isinstance(source_url, str):
        raise InvalidURLError(f"expected a URL string, got {type(source_url).__name__}")

    try:
        parsed = urlsplit(source_url)
        host = parsed.hostname
    except ValueError as e:
        raise InvalidURLError(f"failed to parse URL: {e}") from e

    segments = split_path(parsed.path)
    if host != NEWS_HOST or len(segments) < 2:
        raise InvalidFormatError("invalid Google News URL format")

    if segments[-2] not in ARTICLE_PATH_TYPES:
        raise InvalidFormatError(
            f"invalid Google News URL format: expected /articles/ or /read/, got /{segments[-2]}/"
        )

    return segments[-1]
