"""CSV-backed record sources."""

import asyncio
import csv
import logging
from pathlib import Path
from typing import Any, AsyncIterable, AsyncIterator, Dict, List, Union

logger = logging.getLogger(__name__)

_READ_BATCH = 256


class MalformedCsvError(ValueError):
    """Raised when a CSV row cannot be mapped onto the header."""

    pass


async def csv_records(path: Union[str, Path], encoding: str = "utf-8-sig") -> AsyncIterator[Dict[str, str]]:
    """Yield CSV rows as field-keyed dictionaries.

    File reads run in a worker thread in small batches so large files never
    block the event loop or sit in memory whole.

    Args:
        path: CSV file path
        encoding: File encoding (BOM tolerant by default)

    Yields:
        One dictionary per data row

    Raises:
        FileNotFoundError: If the file does not exist
        MalformedCsvError: If a row has more fields than the header
    """
    path = Path(path)
    handle = await asyncio.to_thread(open, path, "r", encoding=encoding, newline="")
    try:
        reader = csv.DictReader(handle)
        count = 0
        while True:
            rows = await asyncio.to_thread(_read_rows, reader, _READ_BATCH)
            if not rows:
                break
            for row in rows:
                count += 1
                if None in row:  # DictReader files surplus fields under the None key
                    raise MalformedCsvError(f"{path}: record {count} has more fields than the header")
                yield row
        logger.debug(f"Read {count} records from {path}")
    finally:
        await asyncio.to_thread(handle.close)


def _read_rows(reader: "csv.DictReader", count: int) -> List[Dict[str, str]]:
    rows = []
    for row in reader:
        rows.append(row)
        if len(rows) >= count:
            break
    return rows


async def chunked(source: AsyncIterable[Any], size: int) -> AsyncIterator[List[Any]]:
    """Group items of an async iterable into lists of ``size``.

    The final chunk may be shorter.
    """
    if size < 1:
        raise ValueError("size must be at least 1")

    chunk: List[Any] = []
    try:
        async for item in source:
            chunk.append(item)
            if len(chunk) >= size:
                yield chunk
                chunk = []
        if chunk:
            yield chunk
    finally:
        aclose = getattr(source, "aclose", None)
        if aclose is not None:
            await aclose()
