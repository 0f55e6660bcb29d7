"""File-based history of testing records.

Records are kept in one JSON document (``store.path``), rewritten through a
temporary file and an atomic rename on every save.
"""

import json
import logging
import threading
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from repograde.models.analysis import RecordStatus, TestingRecord

logger = logging.getLogger(__name__)

DEFAULT_STORE_PATH = Path(".repograde/history.json")


@dataclass
class HistoryStats:
    """Aggregates over saved records.

    Attributes:
        total_tests: Number of records
        average_score: Mean overall score (0.0 without records)
        average_tool_scores: Mean score per tool over its completed entries
        grade_distribution: Record count per overall grade
        recent: Newest records, summarized
    """

    total_tests: int = 0
    average_score: float = 0.0
    average_tool_scores: dict[str, float] = field(default_factory=dict)
    grade_distribution: dict[str, int] = field(default_factory=dict)
    recent: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_tests": self.total_tests,
            "average_score": self.average_score,
            "average_tool_scores": dict(self.average_tool_scores),
            "grade_distribution": dict(self.grade_distribution),
            "recent": list(self.recent),
        }


def _mean(values: list[int]) -> float:
    return round(sum(values) / len(values), 1) if values else 0.0


class ResultStore:
    """JSON file store for TestingRecords (thread-safe)."""

    def __init__(self, path: Path | None = None) -> None:
        """Initialize store; load from file if present."""
        self._file = path or DEFAULT_STORE_PATH
        self._records: dict[str, TestingRecord] = {}
        self._lock = threading.Lock()
        self._load()

    @property
    def path(self) -> Path:
        return self._file

    def _load(self) -> None:
        """Load records from disk."""
        if not self._file.exists():
            return
        try:
            data = json.loads(self._file.read_text(encoding="utf-8"))
            for raw in data.get("records", []):
                record = TestingRecord.from_dict(raw)
                self._records[record.id] = record
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Corrupted history file %s: %s", self._file, e)
        except OSError as e:
            logger.warning("Cannot read history file %s: %s", self._file, e)

    def _write(self) -> None:
        self._file.parent.mkdir(parents=True, exist_ok=True)
        data = {"records": [r.to_dict() for r in self._records.values()]}
        # Write to temp file first, then atomic rename
        tmp_file = self._file.with_suffix(".tmp")
        try:
            tmp_file.write_text(json.dumps(data, indent=2), encoding="utf-8")
            tmp_file.replace(self._file)
        except OSError:
            tmp_file.unlink(missing_ok=True)
            raise

    def save(self, record: TestingRecord) -> TestingRecord:
        """Persist a record (replacing one with the same id).

        Raises:
            OSError: If the history file cannot be written
        """
        with self._lock:
            self._records[record.id] = record
            self._write()
        logger.debug("Saved record %s for %s", record.id, record.repository)
        return record

    def get(self, record_id: str) -> TestingRecord | None:
        """Get record by id."""
        return self._records.get(record_id)

    def list_records(
        self,
        owner: str | None = None,
        repo: str | None = None,
    ) -> list[TestingRecord]:
        """Records, newest first, optionally filtered by repository."""
        records = [
            r
            for r in self._records.values()
            if (owner is None or r.owner == owner) and (repo is None or r.repo == repo)
        ]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def stats(
        self,
        owner: str | None = None,
        repo: str | None = None,
        recent: int = 5,
    ) -> HistoryStats:
        """Totals, averages and grade distribution of the saved records.

        Args:
            owner: Only records of this owner
            repo: Only records of this repository
            recent: How many of the newest records to summarize
        """
        records = self.list_records(owner, repo)
        tool_scores: dict[str, list[int]] = defaultdict(list)
        for record in records:
            for tool, entry in record.results.items():
                if entry.get("status") == RecordStatus.COMPLETED.value:
                    tool_scores[tool].append(int(entry.get("score", 0)))

        return HistoryStats(
            total_tests=len(records),
            average_score=_mean([r.overall_score for r in records]),
            average_tool_scores={
                tool: _mean(scores) for tool, scores in sorted(tool_scores.items())
            },
            grade_distribution=dict(Counter(r.grade.value for r in records)),
            recent=[
                {
                    "id": r.id,
                    "repository": r.repository,
                    "test_type": r.test_type,
                    "overall_score": r.overall_score,
                    "grade": r.grade.value,
                    "created_at": r.created_at,
                }
                for r in records[:recent]
            ],
        )
