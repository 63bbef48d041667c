"""Parse the Renovate update table out of a pull request body.

Renovate describes its updates in a table like::

    | Package | Update | Change |
    |---|---|---|
    | https://chromium.googlesource.com/chromium/src/third_party/boringssl | digest | `6d1223d` -> `124d8d6` |

Only ``digest`` rows carry raw commit hashes, which is what the history
renderer needs.
"""

import re
from typing import Dict, List, Optional

from renovate_git_history.models.update import UpdateRecord

HEADER_PATTERN = re.compile(r"\| Package \| Update \| Change \|", re.IGNORECASE)
CHANGE_PATTERN = re.compile(r"`([0-9a-f]{7,40})` -> `([0-9a-f]{7,40})`")

DIGEST_UPDATE = "digest"


def _split_row(line: str) -> List[str]:
    return [cell.strip() for cell in line.split("|")]


def _extract_table(body: str) -> Optional[str]:
    """Return the table text from the header to the first blank line."""
    match = HEADER_PATTERN.search(body)
    if not match:
        return None

    # Start at the beginning of the header line so leading columns line up
    table_start = body.rfind("\n", 0, match.start()) + 1
    table_end = body.find("\n\n", table_start)
    if table_end == -1:
        table_end = len(body)
    return body[table_start:table_end]


def _read_rows(table: str) -> List[Dict[str, str]]:
    """Map each data row to a ``column name -> cell`` dict."""
    lines = table.split("\n")
    header = [name.lower() for name in _split_row(lines[0])]

    rows = []
    # Line 1 is the |---|---|---| separator
    for line in lines[2:]:
        cells = _split_row(line)
        rows.append(
            {header[i]: value for i, value in enumerate(cells) if i < len(header)}
        )
    return rows


def parse_table(body: str) -> Optional[List[UpdateRecord]]:
    """Extract digest updates from a pull request body.

    Returns ``None`` when the body has no update table, and an empty list when
    the table exists but none of its rows is a usable digest update.
    """
    table = _extract_table(body.replace("\r\n", "\n"))
    if table is None:
        return None

    records = []
    for row in _read_rows(table):
        if row.get("update") != DIGEST_UPDATE:
            continue

        package = row.get("package")
        change = row.get("change")
        if not package or not change:
            continue

        hashes = CHANGE_PATTERN.search(change)
        if not hashes:
            continue

        records.append(
            UpdateRecord(
                reference=package, old_hash=hashes.group(1), new_hash=hashes.group(2)
            )
        )

    return records
