"""Tests for RunLogger and serialization helpers."""

import json
from pathlib import Path

from ai_digest.data import APICallUsage, CandidateStory, Story, StoryTag, Usage
from ai_digest.errors import EmptyResultError, UpstreamParseError
from ai_digest.run_logger import RunLogger, _serialize

# -- _serialize tests --


def test_serialize_primitives_and_containers() -> None:
    assert _serialize(None) is None
    assert _serialize(42) == 42
    assert _serialize([1, "two", None]) == [1, "two", None]
    assert _serialize({"a": (1, 2)}) == {"a": [1, 2]}
    assert _serialize(Path("logs/x.json")) == "logs/x.json"


def test_serialize_dataclass_with_enum() -> None:
    story = Story(headline="H", tag=StoryTag.SAFETY, summary="S")
    result = _serialize(story)
    assert result == {"headline": "H", "tag": "Safety", "summary": "S", "url": None}


def test_serialize_usage_includes_computed_properties() -> None:
    usage = Usage(
        api_calls=[
            APICallUsage(model="m1", input_tokens=100, output_tokens=50, web_searches=1),
            APICallUsage(model="m2", input_tokens=200, output_tokens=75),
        ],
        hn_requests=12,
    )
    result = _serialize(usage)
    assert result["input_tokens"] == 300
    assert result["output_tokens"] == 125
    assert result["web_searches"] == 1
    assert result["hn_requests"] == 12
    assert len(result["api_calls"]) == 2


# -- RunLogger tests --


def test_disabled_logger_is_noop(tmp_path: Path) -> None:
    run_logger = RunLogger(log_dir=tmp_path / "logs", enabled=False)
    record = run_logger.start_run("composable", "February 5, 2026")
    assert record is None
    run_logger.log_stage(
        record,
        stage="fetch",
        component="X",
        input_data=None,
        output_data=None,
        usage=None,
        duration_seconds=0.1,
    )
    assert run_logger.finish_run(record, [], None) is None
    assert not (tmp_path / "logs").exists()


def test_full_run_writes_json(tmp_path: Path) -> None:
    run_logger = RunLogger(log_dir=tmp_path)
    record = run_logger.start_run("composable", "February 5, 2026")
    assert record is not None

    candidates = [CandidateStory(id="1", title="GPT news", url="https://e.com", score=99)]
    run_logger.log_stage(
        record,
        stage="fetch",
        component="HackerNewsSource",
        input_data={"date": "February 5, 2026", "historical": False},
        output_data=candidates,
        usage=Usage(hn_requests=3),
        duration_seconds=0.123456,
    )
    stories = [Story(headline="H", tag=StoryTag.MODEL, summary="S")]
    path = run_logger.finish_run(record, stories, Usage(hn_requests=3))

    assert path is not None
    assert path == run_logger.last_log_path
    assert path.name.startswith("run_")
    data = json.loads(path.read_text())
    assert data["acquirer_type"] == "composable"
    assert data["date"] == "February 5, 2026"
    assert data["final_story_count"] == 1
    assert data["completed_at"] is not None
    assert data["stages"][0]["output"][0]["title"] == "GPT news"
    assert data["stages"][0]["duration_seconds"] == 0.1235
    assert data["total_usage"]["hn_requests"] == 3


def test_concurrent_runs_keep_separate_records(tmp_path: Path) -> None:
    run_logger = RunLogger(log_dir=tmp_path)
    first = run_logger.start_run("composable", "February 4, 2026")
    second = run_logger.start_run("composable", "February 5, 2026")
    assert first is not None and second is not None

    run_logger.log_stage(
        first,
        stage="fetch",
        component="A",
        input_data=None,
        output_data=None,
        usage=None,
        duration_seconds=0.0,
    )
    assert len(first.stages) == 1
    assert second.stages == []
    assert first.run_id != second.run_id


def test_failed_run_records_error_and_raw_response(tmp_path: Path) -> None:
    run_logger = RunLogger(log_dir=tmp_path)
    record = run_logger.start_run("claude_search", "February 5, 2026")
    error = UpstreamParseError("Could not parse news response", raw="Sorry, no news")
    path = run_logger.finish_run(record, [], Usage(), error=error)

    assert path is not None
    data = json.loads(path.read_text())
    assert data["error"] == "UpstreamParseError: Could not parse news response"
    assert data["raw_response"] == "Sorry, no news"
    assert data["final_story_count"] == 0
    assert data["completed_at"] is not None


def test_failed_run_without_raw_response(tmp_path: Path) -> None:
    run_logger = RunLogger(log_dir=tmp_path)
    record = run_logger.start_run("composable", "February 5, 2026")
    path = run_logger.finish_run(record, [], Usage(), error=EmptyResultError("No AI stories"))

    data = json.loads(path.read_text())
    assert data["error"] == "EmptyResultError: No AI stories"
    assert data["raw_response"] is None


def test_successful_run_has_no_error(tmp_path: Path) -> None:
    run_logger = RunLogger(log_dir=tmp_path)
    record = run_logger.start_run("composable", "February 5, 2026")
    data = json.loads(run_logger.finish_run(record, [], None).read_text())
    assert data["error"] is None
    assert data["raw_response"] is None
