"""Audio format classification and quality selection."""

from __future__ import annotations

import logging
from dataclasses import fields
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .models import AudioEncoding, EncodingDescriptor

logger = logging.getLogger(__name__)


def parse_mime(mime_type: str) -> Optional[Tuple[str, str, Dict[str, str]]]:
    """Split a MIME descriptor into ``(type, subtype, params)``.

    ``audio/webm; codecs="opus"`` yields ``("audio", "webm", {"codecs": "opus"})``.
    Returns ``None`` when the ``type/subtype`` part is missing.
    """
    parts = [part.strip() for part in mime_type.split(";")]
    media = parts[0]
    if "/" not in media:
        return None
    main_type, subtype = (piece.strip().lower() for piece in media.split("/", 1))
    if not main_type or not subtype:
        return None

    params: Dict[str, str] = {}
    for part in parts[1:]:
        if "=" not in part:
            continue
        key, value = part.split("=", 1)
        params[key.strip().lower()] = value.strip().strip('"').strip("'").strip()
    return main_type, subtype, params


def classify_format(descriptor: EncodingDescriptor) -> Optional[AudioEncoding]:
    """Promote *descriptor* to an :class:`AudioEncoding`, or return ``None``."""
    if not descriptor.mime_type.startswith("audio"):
        return None

    parsed = parse_mime(descriptor.mime_type)
    if parsed is None:
        logger.debug("Skipping format with malformed MIME type %r", descriptor.mime_type)
        return None

    _, container, params = parsed
    codec = params.get("codecs", "")
    if not codec:
        logger.debug("Skipping format without codecs parameter: %r", descriptor.mime_type)
        return None

    base = {f.name: getattr(descriptor, f.name) for f in fields(EncodingDescriptor)}
    return AudioEncoding(**base, codec=codec, container=container)


def parse_audio_formats(formats: Sequence[EncodingDescriptor]) -> List[AudioEncoding]:
    """Return the audio-only formats of *formats*, keeping their order."""
    audio: List[AudioEncoding] = []
    for descriptor in formats:
        encoding = classify_format(descriptor)
        if encoding is not None:
            audio.append(encoding)
    return audio


def clamp_quality(quality: Optional[int], count: int) -> int:
    """Map a requested quality to a valid index of a list of *count* items."""
    if quality is None:
        return count - 1
    if quality <= 0:
        return 0
    if quality >= count:
        return count - 1
    return quality


def select_format(
    formats: Sequence[EncodingDescriptor],
    quality: Optional[int] = None,
) -> Union[AudioEncoding, EncodingDescriptor]:
    """Pick the encoding to stream.

    Audio-only encodings are preferred; *quality* indexes into them from
    lowest (0) to highest.  Without any audio-only encoding the last raw
    format is returned as a best-effort fallback.
    """
    audio = parse_audio_formats(formats)
    if not audio:
        if not formats:
            raise ValueError("no formats to select from")
        fallback = formats[-1]
        logger.info("No audio-only format found, falling back to %s", fallback.mime_type)
        return fallback
    return audio[clamp_quality(quality, len(audio))]
