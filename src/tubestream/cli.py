"""Command-line interface for tubestream."""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import aiohttp
import click

from .errors import StreamError
from .formats import parse_audio_formats
from .models import ClientConfig, ResourceMetadata, StreamOptions
from .resolver import stream_from_info
from .transport import AiohttpTransport


def load_metadata(path) -> ResourceMetadata:
    """Read an extractor info payload from a JSON file."""
    try:
        payload = json.load(path)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"not valid JSON: {exc}", param_hint="INFO_JSON") from exc
    if not isinstance(payload, dict):
        raise click.BadParameter("expected a JSON object", param_hint="INFO_JSON")
    return ResourceMetadata.from_dict(payload)


def parse_headers(entries) -> dict[str, str]:
    headers = {}
    for entry in entries:
        if ":" not in entry:
            raise click.BadParameter("Headers must be in the form Name:Value")
        name, value = entry.split(":", 1)
        headers[name.strip()] = value.strip()
    return headers


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """Resolve extracted video metadata into audio streams."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


@cli.command()
@click.argument("info_json", type=click.File("r"))
def formats(info_json):
    """List the audio-only formats of a resource."""
    info = load_metadata(info_json)
    audio = parse_audio_formats(info.formats)

    if not audio:
        click.echo(f"No audio-only formats ({len(info.formats)} format(s) in total)")
        return

    click.echo(f"Found {len(audio)} audio format(s):")
    for index, encoding in enumerate(audio):
        click.echo(f"[{index}] {encoding.container}/{encoding.codec}")
        if encoding.itag is not None:
            click.echo(f"  itag: {encoding.itag}")
        if encoding.bitrate:
            click.echo(f"  Bitrate: {encoding.bitrate} bps")
        if encoding.content_length:
            click.echo(f"  Size: {encoding.content_length} bytes")
        click.echo(f"  Type: {encoding.stream_type.value}")


@cli.command()
@click.argument("info_json", type=click.File("r"))
@click.option("--quality", type=int, help="Audio quality index (0 is lowest)")
@click.option("--seek", type=float, help="Start position in seconds")
@click.option("--precache", type=int, help="Live segments to start behind the edge")
@click.option("--compat", is_flag=True, help="Disable range seeking")
@click.option("--max-bytes", type=int, help="Stop after this many bytes")
@click.option("--header", multiple=True, help="Additional HTTP header as Name:Value")
@click.option("--output", "-o", type=click.File("wb"), default="-", help="Output file")
def fetch(info_json, quality, seek, precache, compat, max_bytes, header, output):
    """Resolve a resource and write its audio bytes."""
    info = load_metadata(info_json)
    options = StreamOptions(
        quality=quality,
        seek=seek,
        precache=precache,
        player_compatibility=compat,
    )
    config = ClientConfig(headers=parse_headers(header) or None)

    async def _run():
        written = 0
        async with AiohttpTransport(config=config) as transport:
            resolved = await stream_from_info(info, transport, options, config)
            async with resolved:
                click.echo(
                    f"Streaming {resolved.kind.value} ({resolved.type.value}) from {resolved.video_url}",
                    err=True,
                )
                async for chunk in resolved:
                    if max_bytes is not None:
                        chunk = chunk[: max_bytes - written]
                    output.write(chunk)
                    written += len(chunk)
                    if max_bytes is not None and written >= max_bytes:
                        break
        return written

    try:
        written = asyncio.run(_run())
    except (StreamError, aiohttp.ClientError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Wrote {written} bytes", err=True)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
