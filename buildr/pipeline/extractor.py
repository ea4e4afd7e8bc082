"""Pull an HTML document out of model output, finished or still streaming."""

import re

FENCE = "```"

_HTML_FENCE_CLOSED = re.compile(r"```html[^\S\n]*\n(.*?)```", re.DOTALL | re.IGNORECASE)
_PLAIN_FENCE_CLOSED = re.compile(r"```[^\S\n]*\n(.*?)```", re.DOTALL)
_HTML_FENCE_OPEN = re.compile(r"```html[^\S\n]*\n", re.IGNORECASE)
_PLAIN_FENCE_OPEN = re.compile(r"```[^\S\n]*\n")
_DOCUMENT_MARKER = re.compile(r"<!doctype|<html", re.IGNORECASE)
_DOCUMENT_END = re.compile(r"</html\s*>", re.IGNORECASE)
# Unfenced output only counts as a page when it opens like one
_RAW_DOCUMENT_START = re.compile(r"\s*(?:<!doctype\s+html|<html[\s>])", re.IGNORECASE)
_RAW_DOCTYPE_START = re.compile(r"\s*<!doctype\s+html", re.IGNORECASE)


def has_document_marker(text: str) -> bool:
    return _DOCUMENT_MARKER.search(text) is not None


def extract_complete(text: str) -> str | None:
    match = _HTML_FENCE_CLOSED.search(text)
    if match:
        return match.group(1).strip()

    for match in _PLAIN_FENCE_CLOSED.finditer(text):
        if has_document_marker(match.group(1)):
            return match.group(1).strip()

    if FENCE not in text and _RAW_DOCUMENT_START.match(text):
        end = _DOCUMENT_END.search(text)
        if end:
            return text[:end.end()].strip()
    return None


def extract_partial(text: str) -> str | None:
    complete = extract_complete(text)
    if complete:
        return complete

    match = _HTML_FENCE_OPEN.search(text)
    if match and FENCE not in text[match.end():]:
        return _trim_partial(text[match.end():])

    # Untagged fences only count once the body already looks like a page
    match = _PLAIN_FENCE_OPEN.search(text)
    if match and FENCE not in text[match.end():]:
        body = text[match.end():]
        if has_document_marker(body):
            return _trim_partial(body)
        return None

    if FENCE not in text and _RAW_DOCTYPE_START.match(text):
        return _trim_partial(text)
    return None


def _trim_partial(body: str) -> str | None:
    # A closing fence may be half-written at the end of the stream
    body = body.rstrip().rstrip("`").strip()
    return body or None
