"""CLI entry point for git-assure."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.command()
def analyze(
    repository: str = typer.Argument(..., help="GitHub repository URL or owner/repo"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the report to this file"),
    token: Optional[str] = typer.Option(None, "--token", help="GitHub token (defaults to GITHUB_TOKEN / GH_TOKEN)"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level", case_sensitive=False),
    json_output: bool = typer.Option(False, "--json", help="Output result as JSON"),
) -> None:
    """Analyze a repository for sustainability and security risks."""
    level = logging.getLevelName(log_level.upper())
    logging.basicConfig(
        level=level if isinstance(level, int) else logging.WARNING,
        format="%(levelname)s: %(message)s",
        force=True,
    )

    from git_assure.analyzer import analyze as run_analysis
    from git_assure.config import Settings

    settings = Settings()
    result = asyncio.run(
        run_analysis(repository, token=token or settings.github_token, settings=settings)
    )

    if output:
        output.write_text(result.markdown, encoding="utf-8")

    if json_output:
        typer.echo(json.dumps(result.model_dump(mode="json"), indent=2))
    else:
        typer.echo(f"Analysis written to {output}" if output else result.markdown)
        typer.echo(f"Overall Risk Score: {result.score} ({result.rating})")
    if result.failed:
        raise typer.Exit(code=1)


@app.command()
def tui() -> None:
    """Launch the interactive terminal UI."""
    from git_assure.app import GitAssureApp

    GitAssureApp().run()


def main() -> None:
    """Load ``.env`` and dispatch to the CLI."""
    from dotenv import load_dotenv

    load_dotenv()  # Load .env file (e.g. GITHUB_TOKEN)
    app()


if __name__ == "__main__":
    main()
