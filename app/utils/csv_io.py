"""CSV reading and writing for product import/export. Streams rows."""
import csv
import io
from typing import IO, Any, Iterable, Iterator, Mapping, Sequence

PRODUCT_FIELDS = ("name", "unit", "category", "brand", "stock", "status", "image")


def read_rows(binary_stream: IO[bytes], encoding: str = "utf-8") -> Iterator[dict]:
    """
    Read an uploaded CSV file as one dict per row, keyed by the header.

    The stream is decoded incrementally; a UTF-8 byte order mark is stripped.
    """
    if encoding.lower() == "utf-8":
        encoding = "utf-8-sig"
    text_stream = io.TextIOWrapper(binary_stream, encoding=encoding, newline="")
    try:
        reader = csv.DictReader(text_stream)
        for row in reader:
            yield {
                (key.strip() if isinstance(key, str) else key): value
                for key, value in row.items()
            }
    finally:
        # Leave the underlying upload open for its owner to close
        text_stream.detach()


def write_rows(rows: Iterable[Mapping[str, Any]], fields: Sequence[str] = PRODUCT_FIELDS) -> Iterator[str]:
    """Render rows as CSV text: the header line first, then one line per row."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(fields), extrasaction="ignore")

    writer.writeheader()
    yield _drain(buffer)

    for row in rows:
        writer.writerow({field: "" if row.get(field) is None else row.get(field) for field in fields})
        yield _drain(buffer)


def _drain(buffer: io.StringIO) -> str:
    value = buffer.getvalue()
    buffer.seek(0)
    buffer.truncate(0)
    return value
