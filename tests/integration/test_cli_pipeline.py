from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from forgerank.cli import app


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def write_json(path: Path, payload: object) -> None:
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")


JOB = {
    "job_id": "JD-001",
    "title": "Backend Engineer",
    "seniority": "mid",
    "requirements": [
        {"id": "testing", "label": "Testing", "importance": "must", "weight": 0.5, "synonyms": ["pytest"]},
        {"id": "api", "label": "API design", "importance": "should", "weight": 0.3},
        {"id": "k8s", "label": "Kubernetes", "importance": "nice", "weight": 0.2},
    ],
}

CANDIDATES = [
    {
        "candidate_id": "C-claims",
        "name": "Claims Only",
        "evidence": [
            {"source": "resume", "skill": "Testing", "text": "Passionate about testing"},
            {"source": "resume", "skill": "API design", "text": "Designed many APIs"},
        ],
    },
    {
        "candidate_id": "C-proven",
        "name": "Proven Builder",
        "evidence": [
            {
                "source": "code-repository",
                "skill": "pytest",
                "text": "pytest suite with 300 tests and CI coverage gates",
                "url": "https://github.com/proven/service",
                "ownership": "owned",
                "last_activity": "2024-04",
            },
            {
                "source": "code-repository",
                "skill": "API design",
                "text": "Versioned REST API design with OpenAPI schema",
                "url": "https://github.com/proven/service",
                "ownership": "owned",
                "last_activity": "2024-04",
            },
            {"source": "writing", "skill": "communication", "text": "Published a design doc and a blog post"},
            {"source": "professional-profile", "skill": "teamwork", "text": "Mentored juniors and ran code review"},
        ],
    },
]


def write_inputs(tmp_path: Path) -> tuple[Path, Path, Path]:
    candidates_path = tmp_path / "candidates.jsonl"
    job_path = tmp_path / "job.json"
    output_path = tmp_path / "out" / "results.json"
    candidates_path.write_text(
        "\n".join(json.dumps(item, ensure_ascii=False) for item in CANDIDATES) + "\n{broken",
        encoding="utf-8",
    )
    write_json(job_path, JOB)
    return candidates_path, job_path, output_path


def test_cli_runs_pipeline_and_writes_output(tmp_path: Path, runner: CliRunner) -> None:
    candidates_path, job_path, output_path = write_inputs(tmp_path)
    audit_path = tmp_path / "audit.jsonl"

    result = runner.invoke(
        app,
        [
            "--candidates",
            str(candidates_path),
            "--job",
            str(job_path),
            "--output",
            str(output_path),
            "--as-of",
            "2024-06-01",
            "--audit-log",
            str(audit_path),
        ],
    )

    assert result.exit_code == 0, result.stdout
    assert "Ranked 2 candidates (1 passed the gate)" in result.stdout

    rendered = json.loads(output_path.read_text(encoding="utf-8"))
    metadata = rendered["metadata"]
    assert metadata["job_id"] == "JD-001"
    assert metadata["candidate_count"] == 2
    assert metadata["threshold_source"] == "fixed"
    assert metadata["used_augmentation"] is False
    assert metadata["errors"] and metadata["errors"][0].startswith("line 3:")
    assert metadata["app_version"]

    first, second = rendered["results"]
    assert first["candidate_id"] == "C-proven"
    assert first["rank"] == 1
    assert first["result"]["pass_gate"] is True
    assert first["result"]["context_scores"]["communication"]["score"] > 0
    assert second["candidate_id"] == "C-claims"
    assert second["result"]["missing_must_haves"] == ["Testing"]
    assert len(second["explanations"]["top_reasons"]) == 3
    assert len(second["explanations"]["risks"]) == 2

    audit_lines = audit_path.read_text(encoding="utf-8").strip().splitlines()
    assert [json.loads(line)["candidate_id"] for line in audit_lines] == ["C-proven", "C-claims"]


def test_cli_applies_yaml_settings(tmp_path: Path, runner: CliRunner) -> None:
    candidates_path, job_path, output_path = write_inputs(tmp_path)
    config_path = tmp_path / "settings.yaml"
    config_path.write_text(
        "forge:\n  capability_threshold: 0.95\n  strict_evidence_mode: true\n",
        encoding="utf-8",
    )

    result = runner.invoke(
        app,
        [
            "--candidates",
            str(candidates_path),
            "--job",
            str(job_path),
            "--output",
            str(output_path),
            "--config",
            str(config_path),
        ],
    )

    assert result.exit_code == 0, result.stdout
    rendered = json.loads(output_path.read_text(encoding="utf-8"))
    assert rendered["metadata"]["threshold"] == 0.95
    assert all(entry["result"]["pass_gate"] is False for entry in rendered["results"])


def test_cli_rejects_invalid_config(tmp_path: Path, runner: CliRunner) -> None:
    candidates_path, job_path, output_path = write_inputs(tmp_path)
    config_path = tmp_path / "settings.yaml"
    config_path.write_text("composer:\n  adjustment_ratio: 0.3\n", encoding="utf-8")

    result = runner.invoke(
        app,
        [
            "--candidates",
            str(candidates_path),
            "--job",
            str(job_path),
            "--output",
            str(output_path),
            "--config",
            str(config_path),
        ],
    )

    assert result.exit_code != 0
    assert not output_path.exists()


def test_cli_rejects_unparsable_as_of(tmp_path: Path, runner: CliRunner) -> None:
    candidates_path, job_path, output_path = write_inputs(tmp_path)

    result = runner.invoke(
        app,
        [
            "--candidates",
            str(candidates_path),
            "--job",
            str(job_path),
            "--output",
            str(output_path),
            "--as-of",
            "garbage",
        ],
    )

    assert result.exit_code == 2
    assert not output_path.exists()


def test_cli_rejects_out_of_range_requirement_weight(tmp_path: Path, runner: CliRunner) -> None:
    candidates_path, job_path, output_path = write_inputs(tmp_path)
    broken_job = json.loads(json.dumps(JOB))
    broken_job["requirements"][0]["weight"] = 1.5
    write_json(job_path, broken_job)

    result = runner.invoke(
        app,
        [
            "--candidates",
            str(candidates_path),
            "--job",
            str(job_path),
            "--output",
            str(output_path),
        ],
    )

    assert result.exit_code == 2
    assert not output_path.exists()
