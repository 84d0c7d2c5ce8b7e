"""JSON-based repository for generation summaries and balance reports."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import TypeAdapter

from nemeths.schemas import BalanceReport, GenerationSummary

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", GenerationSummary, BalanceReport)


class _JsonCollection(Generic[RecordT]):
    """One directory of ``<prefix>_<id>.json`` snapshots."""

    def __init__(self, base_path: Path, prefix: str, model: type[RecordT]) -> None:
        self.base_path = base_path
        self.prefix = prefix
        self._adapter: TypeAdapter[RecordT] = TypeAdapter(model)

    def _path_for(self, record_id: int) -> Path:
        return self.base_path / f"{self.prefix}_{int(record_id)}.json"

    def ids(self) -> list[int]:
        ids: list[int] = []
        prefix = f"{self.prefix}_"
        suffix = ".json"
        for path in self.base_path.glob(f"{self.prefix}_*.json"):
            raw = path.name[len(prefix) : -len(suffix)]
            try:
                ids.append(int(raw))
            except ValueError:  # pragma: no cover - ignored malformed file
                logger.warning("Ignoring unexpected file %s", path)
                continue
        return sorted(ids)

    def next_id(self) -> int:
        existing = self.ids()
        return existing[-1] + 1 if existing else 1

    def save(self, record: RecordT) -> RecordT:
        if record.id is None:
            record = record.model_copy(update={"id": self.next_id()})
        path = self._path_for(record.id)
        path.write_bytes(self._adapter.dump_json(record, indent=2))
        logger.debug("Stored %s %d at %s", self.prefix, record.id, path)
        return record

    def load(self, record_id: int) -> RecordT:
        path = self._path_for(record_id)
        if not path.exists():
            raise FileNotFoundError(f"{self.prefix} {record_id} not found")
        return self._adapter.validate_json(path.read_bytes())

    def delete(self, record_id: int) -> None:
        path = self._path_for(record_id)
        if not path.exists():
            raise FileNotFoundError(f"{self.prefix} {record_id} not found")
        path.unlink()


class JsonResultRepository:
    """Persist generation summaries and balance reports as JSON on disk."""

    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._generations = _JsonCollection(base_path, "generation", GenerationSummary)
        self._reports = _JsonCollection(base_path, "report", BalanceReport)

    def save_generation(self, summary: GenerationSummary) -> GenerationSummary:
        """Store a summary, assigning the next free id when it has none."""

        return self._generations.save(summary)

    def load_generation(self, generation_id: int) -> GenerationSummary:
        """Load a stored summary or raise ``FileNotFoundError``."""

        return self._generations.load(generation_id)

    def list_generations(self) -> list[int]:
        return self._generations.ids()

    def delete_generation(self, generation_id: int) -> None:
        """Remove a stored summary or raise ``FileNotFoundError``."""

        self._generations.delete(generation_id)

    def save_report(self, report: BalanceReport) -> BalanceReport:
        return self._reports.save(report)

    def load_report(self, report_id: int) -> BalanceReport:
        return self._reports.load(report_id)

    def list_reports(self) -> list[int]:
        return self._reports.ids()
