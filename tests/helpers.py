"""Shared builders for scripted Google News responses."""

import json
from urllib.parse import parse_qs

import httpx

# Real tokens: one carries the BBC URL inline, the other an AU_yqL reference.
BBC_TOKEN = (
    "CBMiLmh0dHBzOi8vd3d3LmJiYy5jb20vbmV3cy9hcnRpY2xlcy9jampqbnhkdjE4OG_SATJodHRwczovL3d3dy5iYmMu"
    "Y29tL25ld3MvYXJ0aWNsZXMvY2pqam54ZHYxODhvLmFtcA"
)
BBC_URL = "https://www.bbc.com/news/articles/cjjjnxdv188o"
OPAQUE_TOKEN = (
    "CBMikwFBVV95cUxPYlZLN2dPQkFvMlhFQjE1d09VRk5VRkNlY0lXaXZEbFJTc2FJNmZMRHpoSlVzSGVEeGRsMXBTd0hD"
    "cHZhaUhYTUswbHJYVVpiSlktbVVobWxsRWJ5aVluOV9TQ3hjYjdUQUZ1djg1SFdoTXI3aDEyemE5cWU2U3cxQ1N4LWZK"
    "Y3BlMTJpSUx4LV9ELXc"
)


def article_url(token, path_type="articles"):
    return f"https://news.google.com/{path_type}/{token}?oc=5"


def form_field(request: httpx.Request) -> str:
    """Return the decoded ``f.req`` field of a form-encoded request."""
    return parse_qs(request.content.decode())["f.req"][0]


def rpc_body(urls, tags=True):
    """
    Build a batchexecute response framed like the aggregator's.

    ``tags``: True for 1-based envelope tags, a list for explicit tags,
    False for the ``generic`` tag of a single-reference call.
    """
    entries = []
    for i, url in enumerate(urls, 1):
        result = json.dumps(["garturlres", url, 1], separators=(",", ":"))
        entry = ["wrb.fr", "Fbv4je", result, None, None, None]
        if tags is True:
            entry.append(str(i))
        elif tags:
            entry.append(str(tags[i - 1]))
        else:
            entry.append("generic")
        entries.append(entry)
    entries.append(["di", 42])
    entries.append(["af.httprm", 41, "-6398190412883437417", 2])
    return ")]}'\n\n" + json.dumps(entries, separators=(",", ":"))


def untagged_rpc_body(urls):
    """Legacy shape: ``garturlres`` entries without any envelope tag."""
    parts = [r'[\"garturlres\",\"' + url + r'\",1]' for url in urls]
    return ")]}'\n\n" + "\n".join(parts)


def article_page(signature="AU_sig-123", timestamp="1728563222"):
    return (
        "<html><body><c-wiz>"
        f'<div jscontroller="aLI87" data-n-a-sg="{signature}" data-n-a-ts="{timestamp}" '
        'data-n-a-id="x"></div>'
        "</c-wiz></body></html>"
    )


def signed_body(decoded_url):
    inner = json.dumps(["garturlres", decoded_url, 1])
    return ")]}'\n\n" + json.dumps([["wrb.fr", "Fbv4je", inner, None, None, None, "generic"], ["di", 10]])
