from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List

from services.field_resolver import resolve_social_accounts, split_employers


CSV_COLUMNS: List[str] = [
    "username",
    "starred_at",
    "name",
    "email",
    "country",
    "current_employer",
    "past_employers",
    "linkedin_url",
    "twitter_url",
    "website_url",
    "university",
    "other_socials",
]


def escape_csv(value: Any) -> str:
    """Quote a value only when it carries a comma, double quote or newline."""
    if value is None:
        return ""
    text = str(value)
    if "," in text or '"' in text or "\n" in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def build_export_row(row: Dict[str, Any]) -> List[Any]:
    """Flatten one stargazer/profile join row into the export columns."""
    current, past = split_employers(row.get("employers_json"))
    socials = resolve_social_accounts(
        row.get("social_accounts_json"),
        linkedin_url=row.get("linkedin_url"),
        twitter_username=row.get("twitter_username"),
    )
    return [
        row.get("username"),
        row.get("starred_at"),
        row.get("name"),
        row.get("email"),
        row.get("country"),
        current,
        past,
        socials.linkedin,
        socials.twitter,
        row.get("website_url"),
        row.get("university"),
        socials.others,
    ]


def render_csv(rows: Iterable[Dict[str, Any]]) -> str:
    lines = [",".join(CSV_COLUMNS)]
    for row in rows:
        lines.append(",".join(escape_csv(v) for v in build_export_row(row)))
    return "\n".join(lines) + "\n"


def write_export(rows: Iterable[Dict[str, Any]], output: str) -> int:
    """Write the CSV to `output`, or stdout when it is "-". Returns the row count."""
    rows = list(rows)
    content = render_csv(rows)
    if output == "-":
        sys.stdout.write(content)
        sys.stdout.flush()
    else:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return len(rows)
