"""Parse live DASH manifests into audio segment lists."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urljoin, urlparse

from lxml import etree


@dataclass
class DashSegment:
    """A single media segment of a representation."""

    url: str
    duration: float
    number: int


@dataclass
class DashRepresentation:
    """One rendition listed in the manifest."""

    id: str
    bandwidth: int
    codecs: str
    mime_type: str
    init_url: str
    segments: List[DashSegment]
    is_audio: bool


@dataclass
class DashManifest:
    """The parts of an MPD document the live stream needs."""

    is_live: bool
    min_update_period: Optional[float]
    representations: List[DashRepresentation]

    def find(self, rep_id: str) -> Optional[DashRepresentation]:
        for rep in self.representations:
            if rep.id == rep_id:
                return rep
        return None

    def best_audio(self) -> Optional[DashRepresentation]:
        audio = [rep for rep in self.representations if rep.is_audio]
        candidates = audio or self.representations
        if not candidates:
            return None
        return max(candidates, key=lambda rep: rep.bandwidth)


class DashParser:
    """Parser for DASH MPD manifests."""

    NS = {"mpd": "urn:mpeg:dash:schema:mpd:2011"}

    # Segments to enumerate for a SegmentTemplate without total duration.
    TEMPLATE_WINDOW = 30

    @staticmethod
    def parse(mpd_content: str, mpd_url: str) -> DashManifest:
        """Parse MPD *mpd_content* fetched from *mpd_url*."""
        root = etree.fromstring(mpd_content.encode("utf-8"))
        base = DashParser._join_base(DashParser._directory(mpd_url), root)

        is_live = (root.get("type") or "static").lower() == "dynamic"
        min_update = DashParser._parse_duration(root.get("minimumUpdatePeriod"))
        total = DashParser._parse_duration(root.get("mediaPresentationDuration"))

        representations: List[DashRepresentation] = []
        for period in root.findall("./mpd:Period", namespaces=DashParser.NS):
            period_base = DashParser._join_base(base, period)
            for adaptation in period.findall("./mpd:AdaptationSet", namespaces=DashParser.NS):
                adaptation_base = DashParser._join_base(period_base, adaptation)
                for rep in adaptation.findall("./mpd:Representation", namespaces=DashParser.NS):
                    parsed = DashParser._parse_representation(
                        root, period, adaptation, rep,
                        base_url=DashParser._join_base(adaptation_base, rep),
                        total_duration=total,
                    )
                    if parsed is not None:
                        representations.append(parsed)

        return DashManifest(
            is_live=is_live,
            min_update_period=min_update,
            representations=representations,
        )

    @staticmethod
    def _parse_representation(
        root: etree._Element,
        period: etree._Element,
        adaptation: etree._Element,
        rep: etree._Element,
        *,
        base_url: str,
        total_duration: Optional[float],
    ) -> Optional[DashRepresentation]:
        rep_id = rep.get("id") or ""
        if not rep_id:
            return None

        mime_type = rep.get("mimeType") or adaptation.get("mimeType") or ""
        content_type = rep.get("contentType") or adaptation.get("contentType") or ""
        bandwidth = DashParser._to_int(rep.get("bandwidth"), 0)
        hierarchy = [rep, adaptation, period, root]

        segment_list = DashParser._first_child(hierarchy, "SegmentList")
        template = DashParser._first_child(hierarchy, "SegmentTemplate")

        if segment_list is not None:
            init_url, segments = DashParser._segment_list(segment_list, base_url)
        elif template is not None and template.get("media"):
            init_url, segments = DashParser._segment_template(
                template, rep_id, bandwidth, base_url, total_duration
            )
        else:
            return None

        return DashRepresentation(
            id=rep_id,
            bandwidth=bandwidth,
            codecs=rep.get("codecs") or adaptation.get("codecs") or "",
            mime_type=mime_type,
            init_url=init_url,
            segments=segments,
            is_audio="audio" in mime_type.lower() or content_type.lower() == "audio",
        )

    # ------------------------------------------------------------------
    # Segment addressing
    # ------------------------------------------------------------------

    @staticmethod
    def _segment_list(
        segment_list: etree._Element, base_url: str
    ) -> tuple[str, List[DashSegment]]:
        init_url = ""
        init = segment_list.find("./mpd:Initialization", namespaces=DashParser.NS)
        if init is not None and init.get("sourceURL"):
            init_url = DashParser._resolve(base_url, init.get("sourceURL"))

        timescale = DashParser._to_int(segment_list.get("timescale"), 1) or 1
        default_units = DashParser._to_int(segment_list.get("duration"), 0)
        start_number = DashParser._to_int(segment_list.get("startNumber"), 1)

        segments: List[DashSegment] = []
        entries = segment_list.findall("./mpd:SegmentURL", namespaces=DashParser.NS)
        for offset, entry in enumerate(entries):
            media = entry.get("media")
            if not media:
                continue
            units = DashParser._to_int(entry.get("duration"), default_units)
            url = DashParser._resolve(base_url, media)
            segments.append(
                DashSegment(
                    url=url,
                    duration=units / timescale,
                    number=DashParser._sequence(url, start_number + offset),
                )
            )
        return init_url, segments

    @staticmethod
    def _segment_template(
        template: etree._Element,
        rep_id: str,
        bandwidth: int,
        base_url: str,
        total_duration: Optional[float],
    ) -> tuple[str, List[DashSegment]]:
        media = template.get("media") or ""
        timescale = DashParser._to_int(template.get("timescale"), 1) or 1
        number = DashParser._to_int(template.get("startNumber"), 1)

        init_url = ""
        if template.get("initialization"):
            init_url = DashParser._resolve(
                base_url,
                DashParser._fill(template.get("initialization"), rep_id, number, 0, bandwidth),
            )

        segments: List[DashSegment] = []
        timeline = template.find("./mpd:SegmentTimeline", namespaces=DashParser.NS)
        if timeline is not None:
            time = 0
            for entry in timeline.findall("./mpd:S", namespaces=DashParser.NS):
                time = DashParser._to_int(entry.get("t"), time)
                units = DashParser._to_int(entry.get("d"), 0)
                if units <= 0:
                    continue
                repeat = max(DashParser._to_int(entry.get("r"), 0), 0)
                for _ in range(repeat + 1):
                    path = DashParser._fill(media, rep_id, number, time, bandwidth)
                    segments.append(
                        DashSegment(
                            url=DashParser._resolve(base_url, path),
                            duration=units / timescale,
                            number=number,
                        )
                    )
                    number += 1
                    time += units
            return init_url, segments

        units = DashParser._to_int(template.get("duration"), 0)
        if units <= 0:
            return init_url, segments
        seconds = units / timescale
        count = DashParser.TEMPLATE_WINDOW
        if total_duration:
            count = max(1, int(-(-total_duration // seconds)))
        for offset in range(count):
            path = DashParser._fill(media, rep_id, number + offset, offset * units, bandwidth)
            segments.append(
                DashSegment(
                    url=DashParser._resolve(base_url, path),
                    duration=seconds,
                    number=number + offset,
                )
            )
        return init_url, segments

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _first_child(
        elements: List[etree._Element], tag: str
    ) -> Optional[etree._Element]:
        for element in elements:
            found = element.find(f"./mpd:{tag}", namespaces=DashParser.NS)
            if found is not None:
                return found
        return None

    @staticmethod
    def _directory(url: str) -> str:
        if url.endswith("/"):
            return url
        return url.rsplit("/", 1)[0] + "/" if "/" in url else url + "/"

    @staticmethod
    def _join_base(current: str, element: etree._Element) -> str:
        base = element.find("./mpd:BaseURL", namespaces=DashParser.NS)
        if base is None or not base.text:
            return current
        return DashParser._resolve(current, base.text.strip())

    @staticmethod
    def _resolve(base: str, relative: str) -> str:
        if urlparse(relative).scheme:
            return relative
        return urljoin(base, relative)

    @staticmethod
    def _sequence(url: str, default: int) -> int:
        """Sequence number from an ``sq/N`` path component, else *default*."""
        match = re.search(r"/sq/(\d+)(?=[/?]|$)", url)
        return int(match.group(1)) if match else default

    @staticmethod
    def _to_int(value: Optional[str], default: int) -> int:
        if value in (None, ""):
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    @staticmethod
    def _fill(template: str, rep_id: str, number: int, time: int, bandwidth: int) -> str:
        """Expand ``$Identifier$`` and ``$Identifier%0Nd$`` placeholders."""
        values = {
            "RepresentationID": rep_id,
            "Number": number,
            "Time": time,
            "Bandwidth": bandwidth,
        }

        def substitute(match: re.Match[str]) -> str:
            name, width = match.group(1), match.group(2)
            if name == "":
                return "$"
            if name not in values:
                return match.group(0)
            value = values[name]
            if width and isinstance(value, int):
                return f"{value:0{int(width)}d}"
            return str(value)

        return re.sub(r"\$(\w*)(?:%0?(\d+)d)?\$", substitute, template)

    @staticmethod
    def _parse_duration(value: Optional[str]) -> Optional[float]:
        """Convert an ISO 8601 duration such as ``PT2.000S`` to seconds."""
        if not value:
            return None
        match = re.fullmatch(
            r"P(?:(?P<days>\d+)D)?"
            r"(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>[\d.]+)S)?)?",
            value,
        )
        if not match:
            return None
        days = int(match.group("days") or 0)
        hours = int(match.group("hours") or 0)
        minutes = int(match.group("minutes") or 0)
        seconds = float(match.group("seconds") or 0)
        return days * 86400 + hours * 3600 + minutes * 60 + seconds
