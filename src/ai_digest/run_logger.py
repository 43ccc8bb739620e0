"""Run logger for recording intermediate acquisition results to JSON files."""

import dataclasses
import uuid
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from ai_digest.data import Usage


class StageRecord(BaseModel):
    """Record of a single acquisition stage."""

    stage: str
    component: str
    input: Any = None
    output: Any = None
    usage: dict[str, Any] | None = None
    timestamp: str = ""
    duration_seconds: float = 0.0


class RunRecord(BaseModel):
    """Record of a complete acquisition run."""

    run_id: str
    acquirer_type: str
    date: str
    started_at: str
    completed_at: str | None = None
    stages: list[StageRecord] = []
    final_story_count: int = 0
    total_usage: dict[str, Any] | None = None
    error: str | None = None
    raw_response: str | None = None


def _serialize(obj: Any) -> Any:
    """Serialize an object to JSON-compatible format.

    Handles dataclasses, Pydantic models, enums, lists, dicts, and primitives.
    For Usage objects, includes computed property summaries.
    """
    if obj is None:
        return None
    if isinstance(obj, Usage):
        return {
            "api_calls": [_serialize(c) for c in obj.api_calls],
            "hn_requests": obj.hn_requests,
            "input_tokens": obj.input_tokens,
            "output_tokens": obj.output_tokens,
            "web_searches": obj.web_searches,
        }
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return _serialize(dataclasses.asdict(obj))
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, list | tuple):
        return [_serialize(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    if isinstance(obj, Path):
        return str(obj)
    return obj


class RunLogger:
    """Writes one JSON log file per acquisition run.

    Each run gets its own ``RunRecord``, so concurrent acquisitions for
    different days never share state. When ``enabled=False``, all methods
    are no-ops.

    Args:
        log_dir: Directory to write JSON log files.
        enabled: If False, all methods become no-ops.
    """

    def __init__(self, log_dir: Path, *, enabled: bool = True) -> None:
        self._log_dir = log_dir
        self._enabled = enabled
        self._last_log_path: Path | None = None

    @property
    def enabled(self) -> bool:
        """Whether logging is active."""
        return self._enabled

    @property
    def last_log_path(self) -> Path | None:
        """Path to the last written log file, or None."""
        return self._last_log_path

    def start_run(self, acquirer_type: str, date_key: str) -> RunRecord | None:
        """Create a new run record.

        Args:
            acquirer_type: Type of acquirer (e.g. "composable", "claude_search").
            date_key: Canonical date being acquired.

        Returns:
            The record to pass to ``log_stage``/``finish_run``, or None when
            logging is disabled.
        """
        if not self._enabled:
            return None

        return RunRecord(
            run_id=str(uuid.uuid4()),
            acquirer_type=acquirer_type,
            date=date_key,
            started_at=datetime.now(tz=UTC).isoformat(),
        )

    def log_stage(
        self,
        record: RunRecord | None,
        *,
        stage: str,
        component: str,
        input_data: Any,
        output_data: Any,
        usage: Usage | None,
        duration_seconds: float,
    ) -> None:
        """Append a stage record to a run.

        Args:
            record: Record returned by ``start_run``.
            stage: Stage name (e.g. "fetch", "summarize").
            component: Component class name.
            input_data: Stage input (will be serialized).
            output_data: Stage output (will be serialized).
            usage: Usage for this stage (None for non-API stages).
            duration_seconds: Wall-clock time for this stage.
        """
        if not self._enabled or record is None:
            return

        record.stages.append(
            StageRecord(
                stage=stage,
                component=component,
                input=_serialize(input_data),
                output=_serialize(output_data),
                usage=_serialize(usage) if usage is not None else None,
                timestamp=datetime.now(tz=UTC).isoformat(),
                duration_seconds=round(duration_seconds, 4),
            )
        )

    def finish_run(
        self,
        record: RunRecord | None,
        stories: list[Any],
        usage: Usage | None,
        *,
        error: Exception | None = None,
    ) -> Path | None:
        """Write a run record to a JSON file.

        Args:
            record: Record returned by ``start_run``.
            stories: Final stories (empty for a failed run).
            usage: Total usage for the run.
            error: The exception that ended the run, if it failed. A
                model response that could not be parsed is kept as
                ``raw_response``.

        Returns:
            Path to the written JSON file, or None if logging is disabled.
        """
        if not self._enabled or record is None:
            return None

        record.completed_at = datetime.now(tz=UTC).isoformat()
        record.final_story_count = len(stories)
        record.total_usage = _serialize(usage) if usage is not None else None
        if error is not None:
            record.error = f"{type(error).__name__}: {error}"
            record.raw_response = getattr(error, "raw", None) or None

        self._log_dir.mkdir(parents=True, exist_ok=True)

        # run_2026-02-12T14-30-00_<id8>.json (colons -> dashes)
        ts = record.started_at.replace(":", "-").split(".")[0].split("+")[0]
        filepath = self._log_dir / f"run_{ts}_{record.run_id[:8]}.json"

        filepath.write_text(record.model_dump_json(indent=2))
        self._last_log_path = filepath
        return filepath
