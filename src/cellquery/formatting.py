"""Output formatting for cellquery commands."""
import sys
import csv
import json
from rich.console import Console
from rich.table import Table
from rich import box

SUMMARY_HEADERS = ['id', 'num_total_results', 'num_results']


def detect_format():
    """Pick 'table' for a terminal and 'csv' when stdout is piped."""
    return 'table' if sys.stdout.isatty() else 'csv'


def summary_rows(response, ids=None):
    """One row per Result: requested id, total matches and retrieved items.

    Falls back to the requested id when the server did not echo one, and to
    an empty string when there is no requested id either (filter calls).
    """
    rows = []
    for i, result in enumerate(response.results):
        result_id = result.id
        if result_id is None:
            result_id = ids[i] if ids is not None and i < len(ids) else ''
        rows.append((result_id, result.num_total_results, len(result.items)))
    return rows


def format_csv(headers, rows, file=None):
    """Write rows as CSV, to stdout unless a file is given."""
    writer = csv.writer(
        file or sys.stdout,
        delimiter=',',
        quoting=csv.QUOTE_MINIMAL,
        lineterminator='\n'
    )
    writer.writerow(headers)
    writer.writerows(rows)


def format_table(headers, rows):
    """Print rows as a rich table."""
    table = Table(
        show_header=True,
        header_style='bold',
        box=box.ROUNDED,
        show_lines=False
    )

    # Counts are right-aligned
    for header in headers:
        if header.startswith('num_'):
            table.add_column(header, justify='right')
        else:
            table.add_column(header)

    for row in rows:
        table.add_row(*[str(val) for val in row])

    console = Console()
    console.print(table)


def format_json(response):
    """Dump the full response, items included, as JSON to stdout."""
    json.dump(response.to_dict(), sys.stdout, indent=2, default=str)
    sys.stdout.write('\n')


def output_results(response, ids=None, format='auto'):
    """Print a response in the requested format.

    Args:
        response: Response to print
        ids: Requested ids, used to label results without an id
        format: One of 'auto', 'table', 'csv', 'json'
    """
    if format == 'auto':
        format = detect_format()

    if format == 'json':
        format_json(response)
        return

    rows = summary_rows(response, ids)
    if format == 'table':
        format_table(SUMMARY_HEADERS, rows)
    elif format == 'csv':
        format_csv(SUMMARY_HEADERS, rows)
    else:
        raise ValueError(f"Unknown format: {format}")
