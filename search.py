# search.py
from typing import Dict, List, Sequence

import pandas as pd

from models import ContactRecord

# 表示列: ヘッダ名 → レコードのキー
COLUMNS: Dict[str, str] = {
    "Name": "name",
    "Address": "address",
    "Phone": "phone",
    "Email": "email",
}


def _matches(row: dict, term: str) -> bool:
    for value in row.values():
        if value is None:
            continue
        if term in str(value).casefold():
            return True
    return False


def filter_rows(rows: Sequence[ContactRecord], term: str) -> List[ContactRecord]:
    """Case-insensitive (casefolded) substring search across every field of each row."""
    term = (term or "").casefold()
    if not term:
        return list(rows)
    return [r for r in rows if _matches(r, term)]


def to_frame(rows: Sequence[ContactRecord]) -> pd.DataFrame:
    """Build the display table. Missing values show as N/A."""
    df = pd.DataFrame(
        [[r.get(key) for key in COLUMNS.values()] for r in rows],
        columns=list(COLUMNS.keys()),
        dtype=object,
    )
    return df.fillna("N/A").replace("", "N/A")
