"""Append-only log of completed conversions."""
from pathlib import Path
from typing import List

from beatbridge.core.shared_file import format_timestamp, parse_timestamp, read_json, write_json
from beatbridge.models.record import ConversionRecord
from beatbridge.models.service import MusicService

UNKNOWN_SERVICE = "unknown"


def record_to_dict(r: ConversionRecord) -> dict:
    return {
        "source_link": r.source_link,
        "resolved_link": r.resolved_link,
        "source_service": r.source_service.value if r.source_service else UNKNOWN_SERVICE,
        "target_service": r.target_service.value,
        "title": r.title,
        "artist": r.artist,
        "page_url": r.page_url,
        "created_at": format_timestamp(r.created_at),
    }


def _record_from_dict(item: dict) -> ConversionRecord:
    source = item.get("source_service")
    return ConversionRecord(
        source_link=item["source_link"],
        resolved_link=item["resolved_link"],
        source_service=None if source in (None, UNKNOWN_SERVICE) else MusicService.parse(source),
        target_service=MusicService.parse(item["target_service"]),
        created_at=parse_timestamp(item["created_at"]),
        title=item.get("title"),
        artist=item.get("artist"),
        page_url=item.get("page_url"),
    )


class HistoryLog:
    def __init__(self, path: Path) -> None:
        self._path = path

    def _load_raw(self) -> list:
        items = read_json(self._path).get("conversions", [])
        return items if isinstance(items, list) else []

    def append(self, record: ConversionRecord) -> None:
        items = self._load_raw()
        items.append(record_to_dict(record))
        write_json(self._path, {"conversions": items})

    def list(self) -> List[ConversionRecord]:
        """All records, most recent first (equal timestamps: latest appended first)."""
        out = []
        for item in reversed(self._load_raw()):
            try:
                out.append(_record_from_dict(item))
            except (KeyError, TypeError, ValueError):
                continue
        # sorted() is stable, so reversed insertion order survives for ties
        return sorted(out, key=lambda r: r.created_at, reverse=True)

    def clear(self) -> None:
        write_json(self._path, {"conversions": []})
