"""
Chunked concurrent translation of an ordered list of subtitle entries.

Chunks run one after another; the entries of a chunk are translated
concurrently and the whole chunk is awaited before the next one starts, so at
most ``chunk_size`` requests are in flight at any time.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterator, Protocol, Sequence

from tqdm import tqdm

from api_types import Translation
from subtitle_io import Entry
from translation_client import TranslationFailure

logger = logging.getLogger(__name__)


class LineTranslator(Protocol):
    async def translate(self, text: str, source: str, target: str) -> Translation: ...


class EntryFailure(TranslationFailure):
    """A line of the subtitle could not be translated"""

    def __init__(self, chunk_index: int, line_index: int, text: str, cause: TranslationFailure):
        self.chunk_index = chunk_index
        self.line_index = line_index
        self.text = text
        self.cause = cause
        super().__init__(
            f"Failed to translate line {line_index + 1} (chunk {chunk_index + 1}) {text[:60]!r}: "
            f"{type(cause).__name__}: {cause}"
        )


def iter_chunks(count: int, chunk_size: int) -> Iterator[range]:
    """Consecutive index ranges of at most ``chunk_size`` covering ``range(count)``"""
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be a positive integer, got {chunk_size}")
    for start in range(0, count, chunk_size):
        yield range(start, min(start + chunk_size, count))


async def _translate_slot(
    client: LineTranslator, chunk_index: int, line_index: int, text: str, source: str, target: str
) -> str:
    try:
        translation = await client.translate(text, source, target)
    except TranslationFailure as e:
        raise EntryFailure(chunk_index, line_index, text, e) from e
    return translation.translated_text


async def translate_chunk_async(
    client: LineTranslator,
    chunk_index: int,
    indexed_texts: Sequence[tuple[int, str]],
    source: str,
    target: str,
) -> list[str]:
    """Translate one chunk; results come back in input order.

    On the first failure the rest of the chunk is cancelled and that failure is
    raised. Nothing is written anywhere from here.
    """
    tasks = [
        asyncio.create_task(_translate_slot(client, chunk_index, idx, text, source, target))
        for idx, text in indexed_texts
    ]
    if not tasks:
        return []

    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    # Several tasks may fail within the same wakeup; report the earliest line
    failed = [task for task in tasks if task in done and not task.cancelled() and task.exception() is not None]
    if failed:
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        raise failed[0].exception()

    return [task.result() for task in tasks]


async def translate_all_async(
    entries: list[Entry],
    chunk_size: int,
    client: LineTranslator,
    source: str,
    target: str,
    progress: bool = False,
) -> None:
    """Translate ``entries`` in place, chunk by chunk.

    Raises ``EntryFailure`` for the first line that fails. Entries from the
    failing chunk onward keep their original text.
    """
    chunks = list(iter_chunks(len(entries), chunk_size))
    logger.info("Translating %d lines in %d chunks of up to %d", len(entries), len(chunks), chunk_size)

    for chunk_index, chunk in enumerate(tqdm(chunks, desc="Translating", unit="chunk", disable=not progress)):
        # Tasks get their own copy of the source text; only this loop writes back
        indexed_texts = [(idx, entries[idx].text) for idx in chunk]
        logger.debug("Chunk %d: lines %d-%d", chunk_index + 1, chunk.start + 1, chunk.stop)
        translated = await translate_chunk_async(client, chunk_index, indexed_texts, source, target)
        for idx, text in zip(chunk, translated):
            entries[idx].text = text
