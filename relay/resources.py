"""Stream identifiers and relayable filenames.

Both end up as path components of an origin URL, so anything that could
step outside ``<origin>/<stream>/`` is rejected before a request is made.
"""

import re
from dataclasses import dataclass

from relay.errors import ValidationError

_STREAM_ID = re.compile(r"[A-Za-z0-9_-]{1,64}")
_FILENAME = re.compile(r"[A-Za-z0-9_-][A-Za-z0-9_.-]{0,127}\.(m3u8|ts)")

PLAYLIST_CONTENT_TYPE = "application/vnd.apple.mpegurl"
SEGMENT_CONTENT_TYPE = "video/mp2t"

_CONTENT_TYPES = {
    "m3u8": PLAYLIST_CONTENT_TYPE,
    "ts": SEGMENT_CONTENT_TYPE,
}


def validate_stream_id(stream_id: str) -> str:
    if not _STREAM_ID.fullmatch(stream_id or ""):
        raise ValidationError(f"Invalid stream id: {stream_id!r}")
    return stream_id


def validate_filename(filename: str) -> str:
    if not filename or "/" in filename or "\\" in filename or ".." in filename:
        raise ValidationError(f"Invalid filename: {filename!r}")
    if not _FILENAME.fullmatch(filename):
        raise ValidationError(f"Unsupported file: {filename!r} (only .m3u8 and .ts are relayed)")
    return filename


def content_type_for(filename: str) -> str:
    return _CONTENT_TYPES[filename.rsplit(".", 1)[-1]]


@dataclass(frozen=True)
class RelayResource:
    """One (stream, file) pair; maps to exactly one origin URL."""

    stream_id: str
    filename: str

    @classmethod
    def parse(cls, stream_id: str, filename: str) -> "RelayResource":
        return cls(validate_stream_id(stream_id), validate_filename(filename))

    @property
    def content_type(self) -> str:
        return content_type_for(self.filename)

    @property
    def is_playlist(self) -> bool:
        return self.filename.endswith(".m3u8")

    def origin_url(self, base_url: str) -> str:
        return f"{base_url.rstrip('/')}/{self.stream_id}/{self.filename}"
