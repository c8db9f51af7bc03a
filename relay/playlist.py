"""HLS playlist rewriting.

Every bare ``*.m3u8`` / ``*.ts`` URI line is pointed back at the relay's
segment route, so the player never learns the origin's address.  Directive
lines (``#EXT...``) and comments are left exactly as they are.
"""

import re

SEGMENT_PREFIX = "/proxy/segment/"

# A bare filename, optionally followed by a query string.  Anything with a
# slash (absolute URLs, nested paths, already-rewritten lines) does not match.
_URI_LINE = re.compile(r"(?P<name>[A-Za-z0-9_-][A-Za-z0-9_.-]*\.(?:m3u8|ts))(?P<query>\?[^\s]*)?")


def segment_path(stream_id: str, filename: str) -> str:
    return f"{SEGMENT_PREFIX}{stream_id}/{filename}"


def _rewrite_line(line: str, stream_id: str) -> str:
    stripped = line.strip()
    if not stripped or stripped.startswith("#") or stripped.startswith(SEGMENT_PREFIX):
        return line
    m = _URI_LINE.fullmatch(stripped)
    if m is None:
        return line
    start = line.index(stripped)
    replacement = segment_path(stream_id, m.group("name")) + (m.group("query") or "")
    return line[:start] + replacement + line[start + len(stripped):]


def rewrite(text: str, stream_id: str) -> str:
    """Rewrite playlist URI lines to ``/proxy/segment/<stream_id>/<file>``.

    Idempotent: a rewritten line starts with the segment prefix and is
    skipped on a second pass.  Lines end only at LF or CRLF, and endings
    are preserved.
    """
    out = []
    for raw in text.split("\n"):
        body = raw[:-1] if raw.endswith("\r") else raw
        out.append(_rewrite_line(body, stream_id) + raw[len(body):])
    return "\n".join(out)
