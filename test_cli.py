#!/usr/bin/env python3
"""Test the tubestream command-line interface."""

import json

from click.testing import CliRunner

from tubestream.cli import cli

INFO = {
    "format": [
        {"itag": 18, "mimeType": 'video/mp4; codecs="avc1.42001E, mp4a.40.2"', "url": "https://v/18"},
        {
            "itag": 251,
            "mimeType": 'audio/webm; codecs="opus"',
            "url": "https://a/251",
            "bitrate": 160000,
            "contentLength": "3456789",
        },
    ],
    "LiveStreamData": {"isLive": False},
    "video_details": {"durationInSec": 212, "url": "https://www.youtube.com/watch?v=abc"},
}


def _write(tmp_path, payload) -> str:
    path = tmp_path / "info.json"
    path.write_text(json.dumps(payload))
    return str(path)


def test_formats_lists_audio_encodings(tmp_path):
    result = CliRunner().invoke(cli, ["formats", _write(tmp_path, INFO)])

    assert result.exit_code == 0
    assert "Found 1 audio format(s):" in result.output
    assert "[0] webm/opus" in result.output
    assert "Bitrate: 160000 bps" in result.output
    assert "Type: webm/opus" in result.output


def test_formats_without_audio(tmp_path):
    payload = dict(INFO, format=INFO["format"][:1])

    result = CliRunner().invoke(cli, ["formats", _write(tmp_path, payload)])

    assert result.exit_code == 0
    assert "No audio-only formats (1 format(s) in total)" in result.output


def test_fetch_reports_unstreamable_resource(tmp_path):
    payload = dict(INFO, format=[])

    result = CliRunner().invoke(cli, ["fetch", _write(tmp_path, payload)])

    assert result.exit_code == 1
    assert "Error: Upcoming and premiere videos" in result.output


def test_fetch_rejects_malformed_header(tmp_path):
    result = CliRunner().invoke(cli, ["fetch", _write(tmp_path, INFO), "--header", "broken"])

    assert result.exit_code != 0
    assert "Name:Value" in result.output
