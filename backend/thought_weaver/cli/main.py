"""CLI entrypoint for Thought Weaver."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List, Optional

import requests
import typer
import uvicorn

app = typer.Typer(name="tw", help="Thought Weaver command-line interface")
records_app = typer.Typer(name="records", help="Inspect and write content records")
app.add_typer(records_app, name="records")

DEFAULT_HOST = "http://127.0.0.1:8080"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("TW_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=120, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


def _record_path(app_id: str, user_id: str, record_type: str, record_id: str) -> str:
    return f"/records/{app_id}/{user_id}/{record_type}/{record_id}"


def _read_content(text: Optional[str], file: Optional[Path]) -> Optional[str]:
    if file is not None:
        return file.expanduser().read_text(encoding="utf-8")
    return text


def _parse_meta(pairs: Optional[List[str]]) -> dict:
    """Turn repeated ``key=value`` options into a dict; JSON scalars are decoded."""
    meta: dict = {}
    for pair in pairs or []:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got {pair!r}", param_hint="--meta")
        try:
            meta[key] = json.loads(raw)
        except ValueError:
            meta[key] = raw
    return meta


@app.command()
def insights(
    user: str = typer.Option(..., "--user", help="User identifier"),
    app_id: str = typer.Option(..., "--app", help="Application (tenant) identifier"),
    title: Optional[str] = typer.Option(None, "--title", help="Title of the current document"),
    content: Optional[str] = typer.Option(None, "--content", help="Document content (HTML or text)"),
    file: Optional[Path] = typer.Option(None, "--file", help="Read content from this file"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Find related documents and generate insights for a document."""
    body = {"userId": user, "appId": app_id, "title": title, "content": _read_content(content, file)}
    resp = _request("POST", "/insights", host=host, json=body)
    typer.echo(json.dumps(resp.json(), indent=2))


@records_app.command("put")
def put_record(
    app_id: str = typer.Argument(..., help="Application (tenant) identifier"),
    user: str = typer.Argument(..., help="User identifier"),
    record_type: str = typer.Argument(..., help="note or file"),
    record_id: str = typer.Argument(..., help="Record identifier"),
    title: Optional[str] = typer.Option(None, "--title", help="Record title or file name"),
    text: Optional[str] = typer.Option(None, "--text", help="Note body or extracted text"),
    file: Optional[Path] = typer.Option(None, "--file", help="Read text from this file"),
    meta: Optional[List[str]] = typer.Option(
        None, "--meta", help="Metadata as key=value, repeatable (e.g. --meta name=report.pdf --meta size=1024)"
    ),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Create or update a record; embedding runs in the background."""
    body = {"title": title, "text": _read_content(text, file), "metadata": _parse_meta(meta)}
    resp = _request("PUT", _record_path(app_id, user, record_type, record_id), host=host, json=body)
    typer.echo(json.dumps(resp.json(), indent=2))


@records_app.command("show")
def show_record(
    app_id: str = typer.Argument(..., help="Application (tenant) identifier"),
    user: str = typer.Argument(..., help="User identifier"),
    record_type: str = typer.Argument(..., help="note or file"),
    record_id: str = typer.Argument(..., help="Record identifier"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show a record and its embedding status."""
    resp = _request("GET", _record_path(app_id, user, record_type, record_id), host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


@records_app.command("reprocess")
def reprocess_record(
    app_id: str = typer.Argument(..., help="Application (tenant) identifier"),
    user: str = typer.Argument(..., help="User identifier"),
    record_type: str = typer.Argument(..., help="note or file"),
    record_id: str = typer.Argument(..., help="Record identifier"),
    force: bool = typer.Option(False, "--force", help="Also take records stuck in processing"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Re-embed a record now."""
    path = f"{_record_path(app_id, user, record_type, record_id)}/reprocess"
    resp = _request("POST", path, host=host, params={"force": str(force).lower()})
    typer.echo(json.dumps(resp.json(), indent=2))


@records_app.command("stuck")
def stuck_records(
    older_than: int = typer.Option(600, "--older-than", help="Seconds spent in processing"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """List records left in processing."""
    resp = _request("GET", "/records/stuck", host=host, params={"older_than_s": older_than})
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def serve(
    bind: str = typer.Option("127.0.0.1", "--bind", help="Interface to listen on"),
    port: int = typer.Option(8080, "--port", help="Port to listen on"),
) -> None:
    """Run the API server."""
    uvicorn.run("thought_weaver.app:app", host=bind, port=port)


if __name__ == "__main__":
    app()
