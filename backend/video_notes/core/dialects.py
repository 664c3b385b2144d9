from __future__ import annotations

from video_notes.config import StorageDialect
from video_notes.core.repositories.tag_codec import ArrayTagCodec, JsonStringTagCodec, TagCodec
from video_notes.core.search.filter_strategy import (
    ArrayFilterStrategy,
    FilterStrategy,
    JsonStringFilterStrategy,
)


def build_tag_codec(dialect: StorageDialect) -> TagCodec:
    if dialect is StorageDialect.ARRAY:
        return ArrayTagCodec()
    return JsonStringTagCodec()


def build_filter_strategy(dialect: StorageDialect, codec: TagCodec | None = None) -> FilterStrategy:
    """Return the filter strategy matching ``dialect``.

    The JSON strategy quotes tags with the same codec the repository writes
    with, so substring matches line up with the stored encoding.
    """
    if dialect is StorageDialect.ARRAY:
        return ArrayFilterStrategy()
    if not isinstance(codec, JsonStringTagCodec):
        codec = JsonStringTagCodec()
    return JsonStringFilterStrategy(codec)
