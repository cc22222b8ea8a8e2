from __future__ import annotations

import csv
import json
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Type

from .errors import ExportError
from .models import ScoredItem


class ExportBase(ABC):
    """Abstract base class for one-shot result exports.

    Subclasses write the ranked items to a destination path; an OSError
    from the file system surfaces as ExportError.
    """

    def write(self, ranked: Iterable[ScoredItem], threshold: int, destination: str) -> None:
        """Write all ranked items to destination."""
        try:
            self._write(list(ranked), threshold, destination)
        except OSError as exc:
            raise ExportError(f"{destination}: {exc.strerror or exc}") from exc

    @abstractmethod
    def _write(self, ranked: list[ScoredItem], threshold: int, destination: str) -> None:
        ...


class CsvExport(ExportBase):
    """Comma-separated rows: a title row, a header row, one row per item."""

    def _write(self, ranked: list[ScoredItem], threshold: int, destination: str) -> None:
        with open(destination, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow([f"Items with at least {threshold} ratings, ranked by score and number of ratings."])
            writer.writerow(["Score", "No. Ratings", "Item", "List of Ratings"])
            for item in ranked:
                writer.writerow(
                    [
                        f"{item.score:.3f}",
                        item.observation_count,
                        item.item_key,
                        ", ".join(str(r) for r in item.ratings),
                    ]
                )


class JsonlExport(ExportBase):
    """One JSON object per ranked item (.jsonl)."""

    def _write(self, ranked: list[ScoredItem], threshold: int, destination: str) -> None:
        with open(destination, "w", encoding="utf-8") as f:
            for item in ranked:
                record = {
                    "score": round(item.score, 3),
                    "observation_count": item.observation_count,
                    "item_key": item.item_key,
                    "ratings": list(item.ratings),
                    "threshold": threshold,
                }
                f.write(json.dumps(record, ensure_ascii=False) + "\n")


EXPORTERS: Dict[str, Type[ExportBase]] = {
    "csv": CsvExport,
    "jsonl": JsonlExport,
}


def get_exporter(fmt: str) -> ExportBase:
    try:
        return EXPORTERS[fmt]()
    except KeyError:
        raise ValueError(f"Unknown export format: {fmt}") from None
