from __future__ import annotations

import asyncio
import json
import os
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from opensdk.client.resource import create_resource_client
from opensdk.core.config import Settings
from opensdk.core.errors import SdkError
from opensdk.core.logging import configure_logging
from opensdk.domain.models import ACTION_OPERATIONS
from opensdk.orchestrator.pipeline import SdkBuildResult, load_sdk
from opensdk.transport.httpx_transport import HttpxTransport


app = typer.Typer(no_args_is_help=True, add_completion=False)

console = Console()


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


def _load(tagged: str) -> SdkBuildResult:
    tagged_path = Path(tagged).expanduser().resolve()
    try:
        return load_sdk(tagged_path)
    except SdkError as e:
        console.print(f"[bold red]ERROR[/bold red] {e.message}")
        raise typer.Exit(code=1)


@app.callback()
def main_callback(
    log_level: Optional[LogLevel] = typer.Option(None, case_sensitive=False, help="Log level (default from env)"),
) -> None:
    settings = Settings()
    configure_logging(level=log_level.value if log_level else settings.log_level, format=settings.log_format)


@app.command()
def catalog(
    tagged: str = typer.Argument(..., help="Path to endpoints.tagged.json"),
    object_key: Optional[str] = typer.Option(None, "--object", help="Only show this object key"),
) -> None:
    """Show the primary endpoint chosen for every resource action."""
    result = _load(tagged)
    keys = [k for k in result.object_keys if object_key is None or k == object_key]
    if not keys:
        raise typer.BadParameter(f"Unknown object key: {object_key}")

    console.print(f"[bold]Objects:[/bold] {result.object_count}")

    table = Table(show_header=True, header_style="bold")
    table.add_column("OBJECT", no_wrap=True)
    table.add_column("ACTION", no_wrap=True)
    table.add_column("METHOD", no_wrap=True)
    table.add_column("PATH")
    table.add_column("TITLE")
    table.add_column("ALT", no_wrap=True, justify="right")

    for key in keys:
        cat = result.catalogs[key]
        for action in cat.actions:
            op = ACTION_OPERATIONS[action]
            ep = cat.primaries[op]
            table.add_row(
                key,
                action,
                ep.effective_method,
                ep.path_or_url,
                ep.title,
                str(len(cat.alternates.get(op, ()))),
            )

    console.print(table)


@app.command()
def export(
    tagged: str = typer.Argument(..., help="Path to endpoints.tagged.json"),
    out: Optional[str] = typer.Option(None, help="Output path (default: print to stdout)"),
) -> None:
    """Export primaries and alternates per resource as JSON."""
    result = _load(tagged)
    payload = {
        "objectCount": result.object_count,
        "objects": [result.catalogs[k].to_manifest() for k in result.object_keys],
    }
    text = json.dumps(payload, indent=2, ensure_ascii=False)

    if out:
        out_path = Path(out).expanduser()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text + "\n", encoding="utf-8")
        console.print(f"[bold green]Wrote[/bold green] manifest to: {out_path}")
    else:
        console.print_json(text)


def _response_keys(resp: Any) -> str:
    return ", ".join(resp.keys()) if isinstance(resp, dict) else ""


async def _run_sample(result: SdkBuildResult, object_key: str, settings: Settings, save_model: Optional[dict]) -> None:
    config = settings.to_client_config()
    async with HttpxTransport() as transport:
        resource = create_resource_client(object_key, result.catalogs[object_key], transport, config)
        console.print(f"\\[INFO] OPENAPI_HOST={config.openapi_host}")

        if hasattr(resource, "list"):
            console.print(f"\\[URL] list -> {resource.get_request_url('list')}")
            resp = await resource.list(page=1, page_size=5, filters={})
            console.print(f"\\[OK] list keys: {_response_keys(resp)}")

        if hasattr(resource, "detail"):
            sample_id = os.environ.get("SAMPLE_ID")
            sample_number = os.environ.get("SAMPLE_NUMBER")
            if not sample_id and not sample_number:
                console.print("\\[SKIP] detail requires SAMPLE_ID or SAMPLE_NUMBER")
            else:
                console.print(f"\\[URL] detail -> {resource.get_request_url('detail')}")
                resp = await resource.detail(id=sample_id, number=sample_number)
                console.print(f"\\[OK] detail keys: {_response_keys(resp)}")

        if hasattr(resource, "save"):
            if save_model is None:
                console.print("\\[SKIP] save requires SAMPLE_SAVE_MODEL as JSON string")
            else:
                console.print(f"\\[URL] save -> {resource.get_request_url('save')}")
                resp = await resource.save(save_model)
                console.print(f"\\[OK] save keys: {_response_keys(resp)}")


@app.command()
def sample(
    tagged: str = typer.Argument(..., help="Path to endpoints.tagged.json"),
    object_key: str = typer.Argument(..., help="Object key to exercise"),
) -> None:
    """Smoke-run list/detail/save of one resource against the live API."""
    result = _load(tagged)
    if object_key not in result.catalogs:
        raise typer.BadParameter(f"resource api not found: {object_key}")

    save_model: Optional[dict] = None
    raw_model = os.environ.get("SAMPLE_SAVE_MODEL")
    if raw_model:
        try:
            save_model = json.loads(raw_model)
        except json.JSONDecodeError as e:
            raise typer.BadParameter(f"SAMPLE_SAVE_MODEL is not valid JSON: {e}")
        if not isinstance(save_model, dict):
            raise typer.BadParameter("SAMPLE_SAVE_MODEL must be a JSON object")

    try:
        asyncio.run(_run_sample(result, object_key, Settings(), save_model))
    except SdkError as e:
        console.print(f"[bold red]\\[ERROR][/bold red] {e.message}")
        raise typer.Exit(code=1)


@app.command()
def ping() -> None:
    console.print("pong")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
