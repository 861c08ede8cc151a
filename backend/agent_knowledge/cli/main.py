"""CLI entrypoint for Agent Knowledge."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List, Optional

import requests
import typer

app = typer.Typer(name="agk", help="Agent Knowledge command-line interface")

DEFAULT_HOST = "http://127.0.0.1:8000"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("AGK_HOST")
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


@app.command()
def ingest(
    bucket: str = typer.Argument(..., help="Bucket to replace, e.g. website or documentation"),
    files: List[Path] = typer.Argument(..., help="Text files to upload"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Replace a bucket with the contents of local text files."""
    documents = []
    for path in files:
        resolved = path.expanduser()
        if not resolved.is_file():
            typer.echo(f"Not a file: {resolved}", err=True)
            raise typer.Exit(code=1)
        documents.append({"filename": resolved.name, "content": resolved.read_text(encoding="utf-8")})
    resp = _request("POST", "/ingest", host=host, json={"bucket": bucket, "documents": documents})
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def query(
    q: str = typer.Argument(..., help="Query text"),
    k: int = typer.Option(5, "--k", help="Number of results to return"),
    context: bool = typer.Option(False, "--context", help="Print the formatted context block only"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Query every knowledge bucket."""
    resp = _request("POST", "/query", host=host, json={"query": q, "k": k})
    payload = resp.json()
    if context:
        typer.echo(payload["context"])
        return
    typer.echo(json.dumps(payload["results"], indent=2))


@app.command()
def tables(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show which buckets hold content."""
    resp = _request("GET", "/tables", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def clear(
    bucket: str = typer.Argument(..., help="Bucket to clear"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Drop everything stored for a bucket."""
    resp = _request("DELETE", f"/tables/{bucket}", host=host)
    typer.echo(json.dumps(resp.json()))


if __name__ == "__main__":
    app()
