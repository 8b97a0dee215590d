from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from typing import Any

from api_types import Format
from translation_client import API_TIMEOUT, DEFAULT_ENDPOINT


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise SystemExit(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise SystemExit(f"{name} must be a number, got {raw!r}")


def load_defaults() -> dict[str, Any]:
    """Built-in defaults with environment overrides; CLI flags override both"""
    chunk_size = _env_int("SUBTRANS_CHUNK_SIZE", 5)
    if chunk_size < 1:
        raise SystemExit(f"SUBTRANS_CHUNK_SIZE must be a positive integer, got {chunk_size}")
    return {
        "libretranslate_instance": os.getenv("LIBRETRANSLATE_URL") or DEFAULT_ENDPOINT,
        "libretranslate_apikey": os.getenv("LIBRETRANSLATE_API_KEY") or None,
        "chunk_size": chunk_size,
        "timeout": _env_float("SUBTRANS_TIMEOUT", API_TIMEOUT),
        "language_from": "auto",
        "encoding": "utf-8",
    }


@dataclass(frozen=True)
class TranslatorSettings:
    endpoint: str
    api_key: str | None
    chunk_size: int
    source_lang: str
    target_lang: str
    fmt: Format | None = None
    timeout: float = API_TIMEOUT

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "TranslatorSettings":
        return cls(
            endpoint=args.libretranslate_instance,
            api_key=args.libretranslate_apikey,
            chunk_size=args.chunk_size,
            source_lang=args.language_from.lower(),
            target_lang=args.language_to.lower(),
            fmt=Format(args.format) if args.format else None,
            timeout=args.timeout,
        )


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {number}")
    return number


def parser_with_defaults(defaults: dict[str, Any]) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="subtrans",
        description="Translate a subtitle file line by line with a LibreTranslate instance and write it as SRT.",
    )
    p.add_argument("source_file", help="the source subtitle file (ASS, SSA, MicroDVD, SRT or WebVTT)")
    p.add_argument("language_to", help="the two letter code for the target language")
    p.add_argument("destination_file", help="the destination subtitle file (always written as .srt)")
    p.add_argument(
        "-L",
        "--libretranslate-instance",
        default=defaults["libretranslate_instance"],
        help="URL of the LibreTranslate instance's translation API (env: LIBRETRANSLATE_URL)",
    )
    p.add_argument(
        "-A",
        "--libretranslate-apikey",
        default=defaults["libretranslate_apikey"],
        help="API key for the LibreTranslate instance, if it needs one (env: LIBRETRANSLATE_API_KEY)",
    )
    p.add_argument(
        "-C",
        "--chunk-size",
        type=positive_int,
        default=defaults["chunk_size"],
        help="lines translated concurrently per chunk (env: SUBTRANS_CHUNK_SIZE)",
    )
    p.add_argument(
        "-f",
        "--language-from",
        default=defaults["language_from"],
        help="the two letter code for the source language, or 'auto'",
    )
    p.add_argument("--format", choices=[f.value for f in Format], default=None, help="format of the source text")
    p.add_argument(
        "--timeout",
        type=float,
        default=defaults["timeout"],
        help="per-request timeout in seconds (env: SUBTRANS_TIMEOUT)",
    )
    p.add_argument("--encoding", default=defaults["encoding"], help="encoding of the source and destination files")
    p.add_argument("--fps", type=float, default=None, help="frame rate for MicroDVD files without one")
    p.add_argument("--no-progress", action="store_true", help="hide the progress bar")
    p.add_argument("-v", "--verbose", action="count", default=0, help="more output (repeat for debug)")
    p.add_argument("-q", "--quiet", action="store_true", help="only report errors")
    return p


def resolve_args(argv: list[str] | None = None) -> argparse.Namespace:
    return parser_with_defaults(load_defaults()).parse_args(argv)
