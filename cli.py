import asyncio
import logging
import sys

from batch_dispatcher import translate_all_async
from settings import TranslatorSettings, resolve_args
from subtitle_io import SubtitleFormatError, load_entries, save_entries
from translation_client import TranslationClient, TranslationFailure

logger = logging.getLogger("subtrans")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(verbosity: int = 0, quiet: bool = False) -> None:
    if quiet:
        level = logging.ERROR
    elif verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbosity >= 3 else logging.WARNING)


async def translate_entries_async(entries, settings: TranslatorSettings, progress: bool = False) -> None:
    async with TranslationClient(
        endpoint=settings.endpoint,
        api_key=settings.api_key,
        fmt=settings.fmt,
        timeout=settings.timeout,
        max_connections=settings.chunk_size,
    ) as client:
        await translate_all_async(
            entries,
            settings.chunk_size,
            client,
            settings.source_lang,
            settings.target_lang,
            progress=progress,
        )


def cli_main(argv: list[str] | None = None) -> int:
    args = resolve_args(argv)
    configure_logging(args.verbose, args.quiet)
    settings = TranslatorSettings.from_args(args)

    try:
        logger.info("Reading source subtitles from %s", args.source_file)
        entries = load_entries(args.source_file, encoding=args.encoding, fps=args.fps)
        logger.debug("Read %d subtitle lines", len(entries))

        logger.info("Translating %s -> %s via %s", settings.source_lang, settings.target_lang, settings.endpoint)
        asyncio.run(translate_entries_async(entries, settings, progress=not (args.no_progress or args.quiet)))

        logger.info("Writing translated subtitles")
        real_target = save_entries(entries, args.destination_file, encoding=args.encoding)
    except SubtitleFormatError as e:
        logger.error("Failed to read source subtitles: %s", e)
        return 1
    except TranslationFailure as e:
        logger.error("Translation aborted, nothing written: %s", e)
        return 1
    except OSError as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 1

    if not args.quiet:
        print(f"✅ Translated subtitles saved as: {real_target}")
    return 0


if __name__ == "__main__":
    sys.exit(cli_main())
