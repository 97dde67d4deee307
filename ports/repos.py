from __future__ import annotations

from typing import List, Optional, Protocol, Set, Tuple

from models.enriched_profile_record import EnrichedProfileRecord


class StargazersRepoPort(Protocol):
    def existing_ids(self) -> Set[int]:
        ...

    def insert_stargazer(self, stargazer_id: int, username: str, starred_at: Optional[str]) -> bool:
        ...

    def count_pending(self) -> int:
        ...

    def select_pending(self, limit: int, randomize: bool = False) -> List[Tuple[int, str]]:
        ...

    def mark_failed(self, stargazer_id: int) -> bool:
        ...


class ProfilesRepoPort(Protocol):
    def save_enriched_profile(self, record: EnrichedProfileRecord) -> None:
        ...
