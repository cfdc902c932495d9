#!/usr/bin/env python3
"""Test reading WebM cue points from a file header."""

import pytest

from _fakes import WEBM_SEGMENT_OFFSET, webm_header
from tubestream.webm import WebmParseError, parse_cues, read_vint


def test_read_vint_sizes_and_ids():
    assert read_vint(b"\x81", 0) == (1, 1)
    assert read_vint(b"\x40\x02", 0) == (2, 2)
    assert read_vint(b"\xff", 0) == (-1, 1)
    assert read_vint(b"\x1a\x45\xdf\xa3", 0, keep_marker=True) == (0x1A45DFA3, 4)


def test_read_vint_rejects_bad_input():
    with pytest.raises(WebmParseError):
        read_vint(b"\x00", 0)
    with pytest.raises(WebmParseError):
        read_vint(b"\x40", 0)


def test_parse_cues_resolves_cluster_offsets():
    cues = parse_cues(webm_header([(5000, 400), (0, 100), (10000, 900)]))

    assert cues.segment_offset == WEBM_SEGMENT_OFFSET
    assert cues.timecode_scale == 1_000_000
    assert [point.time for point in cues.points] == [0, 5000, 10000]
    assert cues.offset_for(0) == WEBM_SEGMENT_OFFSET + 100
    assert cues.offset_for(4.999) == WEBM_SEGMENT_OFFSET + 100
    assert cues.offset_for(5) == WEBM_SEGMENT_OFFSET + 400
    assert cues.offset_for(60) == WEBM_SEGMENT_OFFSET + 900


def test_custom_timecode_scale():
    cues = parse_cues(webm_header([(0, 100), (500, 300)], timecode_scale=10_000_000))

    assert cues.offset_for(5) == WEBM_SEGMENT_OFFSET + 300


def test_header_without_cues_has_no_offset():
    assert parse_cues(webm_header([])).offset_for(3) is None


def test_non_webm_data_is_rejected():
    with pytest.raises(WebmParseError):
        parse_cues(b"\x00\x00\x00\x18ftypdash")
