"""
CSV export utilities
"""
import csv
import io
from typing import Iterable, Dict, Iterator, List
from fastapi.responses import StreamingResponse


def iter_csv(headers: List[str], rows: Iterable[Dict], quoting: int = csv.QUOTE_MINIMAL) -> Iterator[str]:
    """
    Yield CSV text chunk by chunk: the header row first, then one chunk per row

    Args:
        headers: List of column headers (also the row dictionary keys)
        rows: Iterable of dictionaries with data rows
        quoting: csv module quoting mode; QUOTE_ALL double-quotes every field
    """
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=headers, quoting=quoting)

    writer.writeheader()
    yield output.getvalue()
    output.seek(0)
    output.truncate(0)

    for row in rows:
        # Missing keys become empty strings
        row_data = {header: _cell(row.get(header)) for header in headers}
        writer.writerow(row_data)
        yield output.getvalue()
        output.seek(0)
        output.truncate(0)


def stream_csv(
    headers: List[str],
    rows: Iterable[Dict],
    filename: str = "export.csv",
    quoting: int = csv.QUOTE_MINIMAL,
) -> StreamingResponse:
    """
    Stream CSV data as HTTP response

    Args:
        headers: List of column headers
        rows: Iterable of dictionaries with data rows
        filename: Filename for Content-Disposition header
        quoting: csv module quoting mode

    Returns:
        StreamingResponse with CSV content
    """
    return StreamingResponse(
        iter_csv(headers, rows, quoting=quoting),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"'
        }
    )


def _cell(value) -> str:
    if value is None:
        return ""
    return str(value)
