"""CLI entrypoint (Typer).

Local tooling around the build service:
- `content-build search-index`  write _site/search-index.json
- `content-build check-schema`   verify the site's frontmatter schema compiles
- `content-build check-content`  validate content files against that schema
- `content-build serve`          run the HTTP API
"""
import json
from pathlib import Path
from typing import Any, Dict, Optional

import typer
import uvicorn

from app.core.config import get_settings
from app.core.errors import SchemaFetchError
from app.parser.frontmatter import FrontmatterSyntaxError, parse_frontmatter
from app.services.schema_validator import compile_schema, to_issue
from app.services.search_index import SearchIndexError, generate_search_index
from app.utils.logging_config import setup_logging

app = typer.Typer(help="Markdown content build service tooling.")


def _load_site_schema(site_data: Path) -> Dict[str, Any]:
    if not site_data.exists():
        typer.echo(f"Error: {site_data} not found", err=True)
        raise typer.Exit(code=1)
    try:
        data = json.loads(site_data.read_text(encoding="utf-8"))
    except ValueError as exc:
        typer.echo(f"Error parsing {site_data}: {exc}", err=True)
        raise typer.Exit(code=1)
    schema = data.get("frontmatterSchema") if isinstance(data, dict) else None
    if not schema:
        typer.echo(f"Error: no 'frontmatterSchema' field found in {site_data}", err=True)
        raise typer.Exit(code=1)
    return schema


@app.command("search-index")
def search_index(
    content_dir: Optional[Path] = typer.Option(None, "--content-dir"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir"),
):
    """Generate the client-side search index from markdown content."""
    settings = get_settings()
    setup_logging(level=settings.log_level, log_dir="")
    try:
        target = generate_search_index(
            content_dir=str(content_dir or settings.content_dir),
            output_dir=str(output_dir or settings.site_output_dir),
        )
    except SearchIndexError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Search index generated: {target}")


@app.command("check-schema")
def check_schema(site_data: Optional[Path] = typer.Option(None, "--site-data")):
    """Check that the site's frontmatterSchema is a valid JSON Schema."""
    path = site_data or Path(get_settings().site_data_path)
    schema = _load_site_schema(path)
    try:
        compile_schema(schema)
    except SchemaFetchError as exc:
        typer.echo(f"Schema is invalid: {exc.payload.get('details', exc.message)}", err=True)
        raise typer.Exit(code=1)

    required = schema.get("required") or []
    properties = schema.get("properties") or {}
    typer.echo("Schema is valid JSON Schema")
    typer.echo(f"  Type: {schema.get('type')}")
    typer.echo(f"  Required fields: {', '.join(required) if required else 'none'}")
    typer.echo(f"  Properties: {len(properties)}")
    for name, definition in properties.items():
        marker = " (required)" if name in required else ""
        description = f" - {definition['description']}" if definition.get("description") else ""
        typer.echo(f"  - {name}: {definition.get('type', 'any')}{marker}{description}")


@app.command("check-content")
def check_content(
    site_data: Optional[Path] = typer.Option(None, "--site-data"),
    content_dir: Optional[Path] = typer.Option(None, "--content-dir"),
):
    """Validate every markdown file in a directory against the site schema."""
    settings = get_settings()
    schema = _load_site_schema(site_data or Path(settings.site_data_path))
    try:
        validator = compile_schema(schema)
    except SchemaFetchError as exc:
        typer.echo(f"Schema is invalid: {exc.payload.get('details', exc.message)}", err=True)
        raise typer.Exit(code=1)

    directory = content_dir or Path(settings.content_dir)
    files = sorted(directory.glob("*.md")) if directory.is_dir() else []
    if not files:
        typer.echo(f"No markdown files found in {directory}", err=True)
        raise typer.Exit(code=1)

    failures = 0
    for index, path in enumerate(files, start=1):
        typer.echo(f"{index}. {path.name}")
        try:
            document = parse_frontmatter(path.read_text(encoding="utf-8"))
        except (OSError, FrontmatterSyntaxError) as exc:
            typer.echo(f"   Error: {exc}")
            failures += 1
            continue

        issues = [to_issue(error) for error in validator.iter_errors(document.frontmatter)]
        if issues:
            failures += 1
            typer.echo("   Invalid")
            for issue in issues:
                typer.echo(f"     - {issue.path}: {issue.message}")
        else:
            typer.echo(f"   Valid ({document.frontmatter.get('title', 'Untitled')})")

    typer.echo(f"Total: {len(files)} | Pass: {len(files) - failures} | Fail: {failures}")
    if failures:
        raise typer.Exit(code=1)


@app.command()
def serve(host: str = "127.0.0.1", port: int = 8000):
    """Run the HTTP API."""
    uvicorn.run("main:app", host=host, port=port)


if __name__ == "__main__":
    app()
