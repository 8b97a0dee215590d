"""
Reading subtitles of any supported format into ``Entry`` lists and writing
them back out as SubRip.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import pysrt
from pysrt.srtexc import Error as SubRipError
import pysubs2
from pysubs2.exceptions import Pysubs2Error, UnknownFPSError

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("ass", "ssa", "microdvd", "srt", "vtt")


class SubtitleFormatError(Exception):
    """Input could not be read as one of the supported subtitle formats"""


@dataclass
class Entry:
    text: str
    start: int  # milliseconds
    end: int  # milliseconds
    coordinates: str | None = None


def _entries_from_subrip(path: Path, encoding: str) -> list[Entry]:
    try:
        subs = pysrt.open(str(path), encoding=encoding, error_handling=pysrt.SubRipFile.ERROR_RAISE)
    except SubRipError as e:
        raise SubtitleFormatError(f"{path.name}: malformed SubRip file: {e}") from e
    return [
        Entry(
            text=item.text,
            start=item.start.ordinal,
            end=item.end.ordinal,
            coordinates=item.position or None,
        )
        for item in subs
    ]


def load_entries(path: str | Path, encoding: str = "utf-8", fps: float | None = None) -> list[Entry]:
    """Read ``path`` and return its subtitle lines in file order.

    The format is detected from the contents. SubRip files are read with pysrt
    so that cue coordinates are kept; everything else goes through pysubs2 and
    loses its styling markup.
    """
    path = Path(path)
    try:
        subs = pysubs2.load(str(path), encoding=encoding, fps=fps)
    except UnknownFPSError as e:
        raise SubtitleFormatError(f"{path.name}: MicroDVD file without a frame rate, pass --fps") from e
    except (Pysubs2Error, UnicodeDecodeError) as e:
        raise SubtitleFormatError(f"{path.name}: unreadable subtitle file: {e}") from e

    fmt = subs.format
    if fmt not in SUPPORTED_FORMATS:
        raise SubtitleFormatError(f"{path.name}: unsupported subtitle format {fmt!r}")
    logger.debug("Detected %s subtitles in %s", fmt, path)

    if fmt == "srt":
        return _entries_from_subrip(path, encoding)

    # Output is SubRip, so ASS override tags and \N breaks are flattened to plain text
    return [
        Entry(text=event.plaintext, start=event.start, end=event.end)
        for event in subs
        if not event.is_comment
    ]


def subrip_destination(destination: str | Path) -> Path:
    """Output is always SubRip, whatever extension was asked for"""
    return Path(destination).with_suffix(".srt")


def save_entries(entries: list[Entry], destination: str | Path, encoding: str = "utf-8") -> Path:
    """Write ``entries`` as a SubRip file numbered from 1 and return the real path"""
    real_target = subrip_destination(destination)
    logger.debug("Real destination is %s", real_target)

    srt = pysrt.SubRipFile()
    for idx, entry in enumerate(entries, start=1):
        srt.append(
            pysrt.SubRipItem(
                index=idx,
                start=pysrt.SubRipTime.from_ordinal(entry.start),
                end=pysrt.SubRipTime.from_ordinal(entry.end),
                text=entry.text,
                position=entry.coordinates or "",
            )
        )
    srt.save(str(real_target), encoding=encoding)
    return real_target
