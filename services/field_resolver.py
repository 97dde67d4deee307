from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple


TWITTER_URL_TEMPLATE = "https://twitter.com/{handle}"


@dataclass(frozen=True)
class SocialLinks:
    linkedin: str
    twitter: str
    others: str


def _load_json_list(value: Any) -> Optional[list]:
    """Accept a list or its JSON text; None when absent or unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, (list, tuple)):
        return list(value)
    try:
        parsed = json.loads(str(value))
    except (TypeError, ValueError):
        return None
    return parsed if isinstance(parsed, list) else None


def _get(entry: Any, key: str) -> Any:
    # Entries are dicts from stored JSON or pydantic models from the pipeline
    if isinstance(entry, dict):
        return entry.get(key)
    return getattr(entry, key, None)


def split_employers(employers: Any) -> Tuple[str, str]:
    """Partition [{name, current}] into ("current, names", "past, names")."""
    items = _load_json_list(employers)
    if items is None:
        return "", ""
    try:
        current = [str(_get(e, "name")) for e in items if _get(e, "current")]
        past = [str(_get(e, "name")) for e in items if not _get(e, "current")]
    except (TypeError, AttributeError):
        return "", ""
    return ", ".join(current), ", ".join(past)


def _twitter_url(value: str) -> str:
    if value and not value.startswith("http"):
        return TWITTER_URL_TEMPLATE.format(handle=value.lstrip("@"))
    return value


def resolve_social_accounts(
    social_accounts: Any,
    linkedin_url: Optional[str] = None,
    twitter_username: Optional[str] = None,
) -> SocialLinks:
    """Merge dedicated LinkedIn/Twitter fields with the social-account list.

    A non-empty dedicated field always wins; otherwise the first list entry of
    that provider is used. Every other provider goes to `others` in list order.
    """
    linkedin = str(linkedin_url) if linkedin_url else ""
    twitter = str(twitter_username) if twitter_username else ""
    others: list[str] = []

    for account in _load_json_list(social_accounts) or []:
        provider = _get(account, "provider")
        url = _get(account, "url")
        if not provider:
            continue
        key = str(provider).lower()
        if key == "linkedin":
            if not linkedin and url:
                linkedin = str(url)
        elif key == "twitter":
            if not twitter and url:
                twitter = str(url)
        else:
            others.append(f"{provider}: {url}")

    return SocialLinks(linkedin=linkedin, twitter=_twitter_url(twitter), others=", ".join(others))


def distinct_emails(candidates: Iterable[Optional[str]], excluded_marker: str = "noreply") -> list[str]:
    """Distinct, order-preserving email list without placeholder addresses."""
    seen: dict[str, None] = {}
    for email in candidates:
        if email and excluded_marker not in email:
            seen.setdefault(email, None)
    return list(seen)
