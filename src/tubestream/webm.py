"""Read the seek index (Cues) out of a WebM header."""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

EBML_HEADER = 0x1A45DFA3
SEGMENT = 0x18538067
INFO = 0x1549A966
TIMECODE_SCALE = 0x2AD7B1
CUES = 0x1C53BB6B
CUE_POINT = 0xBB
CUE_TIME = 0xB3
CUE_TRACK_POSITIONS = 0xB7
CUE_CLUSTER_POSITION = 0xF1
CLUSTER = 0x1F43B675

DEFAULT_TIMECODE_SCALE = 1_000_000  # nanoseconds per tick


class WebmParseError(ValueError):
    """The buffer is not a WebM header this reader understands."""


@dataclass
class CuePoint:
    time: int
    cluster_position: int


@dataclass
class WebmCues:
    """Cue points of a WebM file, resolved to absolute byte offsets."""

    segment_offset: int
    timecode_scale: int = DEFAULT_TIMECODE_SCALE
    points: List[CuePoint] = field(default_factory=list)

    def offset_for(self, seconds: float) -> Optional[int]:
        """Byte offset of the last cluster starting at or before *seconds*."""
        if not self.points:
            return None
        target = int(seconds * 1_000_000_000 / self.timecode_scale)
        times = [point.time for point in self.points]
        index = max(bisect.bisect_right(times, target) - 1, 0)
        return self.segment_offset + self.points[index].cluster_position


def read_vint(data: bytes, pos: int, *, keep_marker: bool = False) -> Tuple[int, int]:
    """Decode an EBML variable-length integer at *pos*.

    Returns ``(value, length)``.  Element ids keep their marker bit, sizes
    do not.  An all-ones size (unknown length) is returned as ``-1``.
    """
    if pos >= len(data):
        raise WebmParseError("unexpected end of data")
    first = data[pos]
    length = 1
    mask = 0x80
    while length <= 8 and not first & mask:
        mask >>= 1
        length += 1
    if length > 8:
        raise WebmParseError(f"invalid vint at byte {pos}")
    if pos + length > len(data):
        raise WebmParseError("unexpected end of data")

    value = first if keep_marker else first & (mask - 1)
    for byte in data[pos + 1:pos + length]:
        value = (value << 8) | byte

    if not keep_marker and value == (1 << (7 * length)) - 1:
        return -1, length
    return value, length


def _read_uint(data: bytes) -> int:
    return int.from_bytes(data, "big") if data else 0


def _iter_elements(data: bytes, start: int, end: int):
    """Yield ``(id, data_start, data_end)`` for children in ``[start, end)``."""
    pos = start
    while pos < end:
        element_id, id_len = read_vint(data, pos, keep_marker=True)
        size, size_len = read_vint(data, pos + id_len)
        data_start = pos + id_len + size_len
        data_end = end if size < 0 else data_start + size
        yield element_id, data_start, min(data_end, len(data))
        if data_end > len(data):
            return
        pos = data_end


def _parse_cue_point(data: bytes, start: int, end: int) -> Optional[CuePoint]:
    time: Optional[int] = None
    position: Optional[int] = None
    for element_id, child_start, child_end in _iter_elements(data, start, end):
        if element_id == CUE_TIME:
            time = _read_uint(data[child_start:child_end])
        elif element_id == CUE_TRACK_POSITIONS and position is None:
            for inner_id, inner_start, inner_end in _iter_elements(data, child_start, child_end):
                if inner_id == CUE_CLUSTER_POSITION:
                    position = _read_uint(data[inner_start:inner_end])
    if time is None or position is None:
        return None
    return CuePoint(time=time, cluster_position=position)


def parse_cues(header: bytes) -> WebmCues:
    """Parse the EBML header, segment info and cues contained in *header*.

    *header* is the start of the file up to at least the end of the Cues
    element.  Parsing stops at the first Cluster.
    """
    pos = 0
    element_id, id_len = read_vint(header, pos, keep_marker=True)
    if element_id != EBML_HEADER:
        raise WebmParseError("missing EBML header")
    size, size_len = read_vint(header, pos + id_len)
    pos += id_len + size_len + size

    element_id, id_len = read_vint(header, pos, keep_marker=True)
    if element_id != SEGMENT:
        raise WebmParseError("missing Segment element")
    _, size_len = read_vint(header, pos + id_len)
    segment_offset = pos + id_len + size_len

    cues = WebmCues(segment_offset=segment_offset)
    for element_id, start, end in _iter_elements(header, segment_offset, len(header)):
        if element_id == CLUSTER:
            break
        if element_id == INFO:
            for child_id, child_start, child_end in _iter_elements(header, start, end):
                if child_id == TIMECODE_SCALE:
                    cues.timecode_scale = _read_uint(header[child_start:child_end]) or DEFAULT_TIMECODE_SCALE
        elif element_id == CUES:
            for child_id, child_start, child_end in _iter_elements(header, start, end):
                if child_id != CUE_POINT:
                    continue
                point = _parse_cue_point(header, child_start, child_end)
                if point is not None:
                    cues.points.append(point)
    cues.points.sort(key=lambda point: point.time)
    return cues
