#!/usr/bin/env python3
"""Test DASH manifest parsing for live audio."""

from tubestream.dash_parser import DashParser


TEMPLATE_MPD = """<?xml version="1.0" encoding="utf-8"?>
<MPD xmlns="urn:mpeg:dash:schema:mpd:2011"
     mediaPresentationDuration="PT0H0M8.000S">
  <Period duration="PT0H0M8.000S">
    <AdaptationSet mimeType="video/mp4" segmentAlignment="true">
      <SegmentTemplate timescale="24" media="video/$Number%02d$.m4s"
                        initialization="video/init.mp4" startNumber="1"
                        duration="96" />
      <Representation id="video-main" codecs="avc1.4d401e"
                      bandwidth="800000" width="1280" height="720" />
    </AdaptationSet>
    <AdaptationSet mimeType="audio/mp4" segmentAlignment="true">
      <SegmentTemplate timescale="48000" media="audio/$RepresentationID$/$Number%02d$.m4s"
                        initialization="audio/init.mp4" startNumber="5"
                        duration="192000" />
      <Representation id="audio-main" codecs="mp4a.40.2" bandwidth="128000" />
      <Representation id="audio-low" codecs="mp4a.40.2" bandwidth="48000" />
    </AdaptationSet>
  </Period>
</MPD>
"""

LIVE_MPD = """<?xml version="1.0" encoding="UTF-8"?>
<MPD xmlns="urn:mpeg:dash:schema:mpd:2011" type="dynamic" minimumUpdatePeriod="PT5.000S">
  <Period start="PT0S">
    <AdaptationSet mimeType="audio/mp4" subsegmentAlignment="true">
      <Representation id="140" codecs="mp4a.40.2" audioSamplingRate="48000" bandwidth="144000">
        <BaseURL>https://rr2.example.com/videoplayback/id/abc/itag/140/</BaseURL>
        <SegmentList startNumber="2701">
          <SegmentTimeline><S d="5000"/><S d="5000"/></SegmentTimeline>
          <SegmentURL media="sq/2701"/>
          <SegmentURL media="sq/2702"/>
        </SegmentList>
      </Representation>
    </AdaptationSet>
  </Period>
</MPD>
"""


def test_segment_template_parsing():
    manifest = DashParser.parse(TEMPLATE_MPD, "https://example.com/manifest.mpd")

    assert manifest.is_live is False
    assert len(manifest.representations) == 3

    video = manifest.find("video-main")
    audio = manifest.find("audio-main")
    assert video is not None and not video.is_audio
    assert audio is not None and audio.is_audio

    assert video.init_url == "https://example.com/video/init.mp4"
    assert video.segments[0].url == "https://example.com/video/01.m4s"
    assert len(video.segments) == 2
    assert abs(video.segments[0].duration - 4.0) < 1e-6

    assert audio.init_url == "https://example.com/audio/init.mp4"
    assert audio.segments[0].url == "https://example.com/audio/audio-main/05.m4s"
    assert audio.segments[0].number == 5
    assert manifest.best_audio() is audio


def test_live_segment_list_parsing():
    manifest = DashParser.parse(LIVE_MPD, "https://manifest.example.com/api/manifest/dash/id/abc")

    assert manifest.is_live is True
    assert manifest.min_update_period == 5.0

    rep = manifest.find("140")
    assert rep is not None
    assert rep.is_audio
    assert rep.init_url == ""
    assert [segment.number for segment in rep.segments] == [2701, 2702]
    assert rep.segments[-1].url == "https://rr2.example.com/videoplayback/id/abc/itag/140/sq/2702"
    assert manifest.find("251") is None


def test_segment_numbers_come_from_sq_urls():
    mpd = LIVE_MPD.replace(' startNumber="2701"', "")
    manifest = DashParser.parse(mpd, "https://manifest.example.com/api/manifest/dash/id/abc")

    assert [segment.number for segment in manifest.find("140").segments] == [2701, 2702]


def test_manifest_without_audio_falls_back_to_any_representation():
    mpd = TEMPLATE_MPD.replace('mimeType="audio/mp4"', 'mimeType="video/webm"')
    manifest = DashParser.parse(mpd, "https://example.com/manifest.mpd")

    assert manifest.best_audio().id == "video-main"
