"""Typer CLI entrypoint for the ranking pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer

from .augmentation import HTTPAugmentationClient
from .config import load_settings
from .container import create_container
from .errors import ConfigurationError
from .logging import configure_logging
from .pipeline import AuditLogger

app = typer.Typer(help="Evidence-tiered candidate ranking CLI.")


@app.command()
def run(
    candidates: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Candidates JSONL path."),
    job: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Job specification JSON path."),
    output: Path = typer.Option(
        ...,
        exists=False,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="Output JSON path.",
    ),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    as_of: Optional[str] = typer.Option(None, help="Reference date (YYYY-MM or ISO) for evidence recency."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
    audit_log: Optional[Path] = typer.Option(None, dir_okay=False, help="Audit log output (JSONL)."),
    augment_endpoint: Optional[str] = typer.Option(None, help="External evidence assessor endpoint."),
    augment_api_key: Optional[str] = typer.Option(None, help="External evidence assessor API key."),
) -> None:
    """Score and rank candidates for one job."""
    configure_logging(log_level)

    settings: dict[str, Any] = {}
    try:
        if config:
            settings = load_settings(config)
        container = create_container(settings=settings)
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc), param_name="config") from exc

    pipeline = container.pipeline()
    audit_logger = AuditLogger(audit_log) if audit_log else None
    augmentation_client = HTTPAugmentationClient(augment_endpoint, augment_api_key) if augment_endpoint else None

    try:
        batch = pipeline.run(
            candidates_path=candidates,
            job_path=job,
            output_path=output,
            settings=settings,
            as_of=as_of,
            audit_logger=audit_logger,
            augmentation_client=augmentation_client,
        )
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    passed = sum(1 for entry in batch.results if entry.result.pass_gate)
    typer.echo(
        f"Ranked {batch.metadata.candidate_count} candidates ({passed} passed the gate). Results saved to {output}."
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
