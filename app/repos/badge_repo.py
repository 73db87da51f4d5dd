from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from app.models.badge import BadgeRecord


class BadgeRepo(Protocol):
    def get(self, badge_id: str) -> BadgeRecord | None: ...
    def add(self, record: BadgeRecord) -> None: ...
    def attach_baked_svg(self, badge_id: str, svg: str) -> BadgeRecord: ...
    def list_for_speaker(self, speaker_id: str) -> list[BadgeRecord]: ...
    def find(
        self, speaker_id: str, conference_id: str, badge_type: str
    ) -> BadgeRecord | None: ...


class InMemoryBadgeRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, BadgeRecord] = {}

    def get(self, badge_id: str) -> BadgeRecord | None:
        return self._by_id.get(badge_id)

    def add(self, record: BadgeRecord) -> None:
        if record.badge_id in self._by_id:
            raise ValueError("badge already exists")
        self._by_id[record.badge_id] = record

    def attach_baked_svg(self, badge_id: str, svg: str) -> BadgeRecord:
        record = self._by_id.get(badge_id)
        if record is None:
            raise KeyError(badge_id)
        if record.baked_svg is not None:
            raise ValueError("baked svg already attached")
        updated = replace(record, baked_svg=svg)
        self._by_id[badge_id] = updated
        return updated

    def list_for_speaker(self, speaker_id: str) -> list[BadgeRecord]:
        return [r for r in self._by_id.values() if r.speaker_id == speaker_id]

    def find(
        self, speaker_id: str, conference_id: str, badge_type: str
    ) -> BadgeRecord | None:
        for r in self._by_id.values():
            if (
                r.speaker_id == speaker_id
                and r.conference_id == conference_id
                and r.badge_type == badge_type
            ):
                return r
        return None
