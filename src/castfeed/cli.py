"""CLI entry point for castfeed."""

import asyncio
import sys
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from castfeed.config.logging import setup_logging
from castfeed.config.manager import ConfigManager
from castfeed.publish import OutcomeStatus, Publisher, RunResult, RunStatus
from castfeed.storage import S3ObjectStore
from castfeed.utils.errors import (
    CastfeedError,
    ConfigError,
    InvalidConfigError,
    MediaError,
)

app = typer.Typer(
    name="castfeed",
    help="Publish a set of audio files as a podcast feed",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

STATUS_MARKS = {
    OutcomeStatus.SUCCEEDED.value: "[green]✓[/green]",
    OutcomeStatus.FAILED.value: "[red]✗[/red]",
    OutcomeStatus.SKIPPED.value: "[yellow]–[/yellow]",
}


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose (DEBUG) logging"
    ),
    log_file: Path | None = typer.Option(
        None, "--log-file", help="Write logs to file"
    ),
) -> None:
    """castfeed - Turn local audio files into a published podcast."""
    setup_logging(verbose=verbose, log_file=log_file)
    ctx.obj = {"verbose": verbose, "log_file": log_file}


@app.command("version")
def show_version() -> None:
    """Show version information."""
    from castfeed import __version__

    console.print(f"[bold cyan]castfeed[/bold cyan] v{__version__}")


@app.command("build")
def build_command(
    ctx: typer.Context,
    files: list[Path] = typer.Argument(..., help="Audio files, in episode order"),
    show_file: Path | None = typer.Option(
        None, "--show", "-s", help="YAML file with show settings"
    ),
    title: str | None = typer.Option(None, "--title", "-t", help="Show title"),
    description: str | None = typer.Option(None, "--description", help="Show description"),
    author: str | None = typer.Option(None, "--author", help="Show author"),
    image: str | None = typer.Option(None, "--image", help="Cover image URL (.jpg or .png)"),
    link: str | None = typer.Option(None, "--link", help="Show website"),
    language: str | None = typer.Option(None, "--language", help="Feed language, e.g. en"),
    bucket: str | None = typer.Option(None, "--bucket", "-b", help="Destination bucket"),
    region: str | None = typer.Option(None, "--region", "-r", help="Bucket region"),
    endpoint: str | None = typer.Option(
        None, "--endpoint", help="S3-compatible endpoint URL"
    ),
    base_url: str | None = typer.Option(
        None, "--base-url", help="Public base URL override ({bucket}/{region} allowed)"
    ),
    prefix: str | None = typer.Option(None, "--prefix", help="Remote folder for all objects"),
    feed_name: str | None = typer.Option(None, "--feed-name", help="Feed object name"),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write the feed to this file"
    ),
    publish: bool = typer.Option(
        False, "--publish", help="Upload media and feed to the bucket"
    ),
    public_read: bool | None = typer.Option(
        None, "--public-read/--private", help="Upload objects with a public-read ACL"
    ),
) -> None:
    """Build a podcast feed from audio files and optionally publish it.

    Episodes appear in the feed in the order the files are given.

    Examples:
        castfeed build ep1.mp3 ep2.mp3 --title "My Show" --bucket my-show -o feed.xml

        castfeed build episodes/*.m4a --show show.yaml --publish
    """
    opts = ctx.obj or {}
    # Feed on stdout means status goes to stderr
    out = console if (output or publish) else err_console

    try:
        manager = ConfigManager()
        config = manager.load_config()
        if not opts.get("verbose"):
            setup_logging(log_file=opts.get("log_file"), level=config.log_level)

        overrides: dict[str, Any] = {
            "title": title,
            "description": description,
            "author": author,
            "image_url": image,
            "link": link,
            "language": language,
            "bucket": bucket,
            "region": region,
            "endpoint_url": endpoint,
            "base_url": base_url,
            "key_prefix": prefix,
            "feed_filename": feed_name,
        }
        show = manager.load_show(show_file, overrides, config=config)

        settings = config.publish
        if public_read is not None:
            settings = settings.model_copy(update={"public_read": public_read})

        store = S3ObjectStore.from_show(show, settings) if publish and show.bucket else None
        publisher = Publisher(show, settings=settings, store=store)

        def handle_progress(step_name: str, step_data: dict[str, Any]) -> None:
            if step_name == "extraction_start":
                out.print(f"[bold]Reading[/bold] {step_data['file_count']} file(s)...")

            elif step_name == "extraction_complete":
                out.print(f"[green]✓[/green] Read {step_data['file_count']} episode(s)")
                if step_data["unknown_durations"]:
                    out.print(
                        f"  [dim]{step_data['unknown_durations']} without a known duration[/dim]"
                    )

            elif step_name == "assembly_complete":
                out.print(
                    f"[green]✓[/green] Assembled feed with {step_data['entry_count']} item(s)"
                )

            elif step_name == "feed_written":
                out.print(f"[green]✓[/green] Wrote [cyan]{step_data['path']}[/cyan]")

            elif step_name == "upload_start":
                out.print(f"\n[bold]Uploading[/bold] {step_data['target_count']} object(s)...")

            elif step_name == "target_complete":
                mark = STATUS_MARKS[step_data["status"]]
                position = f"[{step_data['index'] + 1}/{step_data['total']}]"
                line = f"{mark} {position} {step_data['key']}"
                if step_data["error"]:
                    line += f" [dim]({step_data['error']})[/dim]"
                out.print(line)

        result = asyncio.run(
            publisher.run(
                files,
                publish=publish,
                output_path=output,
                progress_callback=handle_progress,
            )
        )

        if not output and not publish:
            typer.echo(result.feed.content.decode("utf-8"), nl=False)
            return

        _print_summary(out, result)

        if result.status is RunStatus.CANCELLED:
            sys.exit(130)
        if not result.ok:
            sys.exit(1)

    except KeyboardInterrupt:
        out.print("\n[yellow]Cancelled by user[/yellow]")
        sys.exit(130)
    except InvalidConfigError as e:
        out.print(f"[red]✗[/red] {e}")
        if e.field:
            out.print(f"[dim]  Field: {e.field}[/dim]")
        sys.exit(1)
    except MediaError as e:
        out.print(f"[red]✗[/red] {e}")
        sys.exit(1)
    except CastfeedError as e:
        out.print(f"[red]✗[/red] Error: {e}")
        sys.exit(1)


def _print_summary(out: Console, result: RunResult) -> None:
    """Print the run outcome."""
    if not result.published and not result.outcomes:
        out.print("\n[bold green]✓ Complete![/bold green]")
        return

    if result.ok:
        out.print("\n[bold green]✓ Published![/bold green]")
    elif result.status is RunStatus.CANCELLED:
        out.print("\n[yellow]Cancelled; feed not uploaded[/yellow]")
    else:
        out.print("\n[bold red]✗ Publishing incomplete; feed not updated[/bold red]")

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="dim")
    table.add_column("Value", style="white")
    table.add_row("Uploaded:", str(len(result.succeeded)))
    if result.failed:
        table.add_row("Failed:", f"[red]{len(result.failed)}[/red]")
    if result.skipped:
        table.add_row("Skipped:", str(len(result.skipped)))
    if result.feed_url:
        table.add_row("Feed:", f"[cyan]{result.feed_url}[/cyan]")
    out.print(table)

    for outcome in result.failed:
        out.print(f"[red]✗[/red] {outcome.target.key}: {outcome.error}")


@app.command("config")
def config_command(
    action: str = typer.Argument(..., help="Action: show, path, or set <key> <value>"),
    key: str | None = typer.Argument(None, help="Config key (for 'set' action)"),
    value: str | None = typer.Argument(None, help="Config value (for 'set' action)"),
) -> None:
    """Manage castfeed configuration.

    Actions:
        show: Display current configuration
        path: Print the config file location
        set:  Set a configuration value

    Examples:
        castfeed config show

        castfeed config set publish.upload_concurrency 8

        castfeed config set show_defaults.bucket my-podcasts
    """
    try:
        manager = ConfigManager()

        if action == "show":
            config = manager.load_config()

            console.print("\n[bold]castfeed Configuration[/bold]\n")

            table = Table(show_header=False, box=None)
            table.add_column("Key", style="cyan")
            table.add_column("Value", style="white")

            table.add_row("Config file", str(manager.config_file))
            table.add_row("Log level", config.log_level)
            for name, field_value in config.publish.model_dump().items():
                table.add_row(f"publish.{name}", str(field_value))
            for name, field_value in config.show_defaults.items():
                table.add_row(f"show_defaults.{name}", str(field_value))

            console.print(table)

        elif action == "path":
            console.print(str(manager.config_file))

        elif action == "set":
            if not key or value is None:
                console.print("[red]✗[/red] Usage: castfeed config set <key> <value>")
                sys.exit(1)

            manager.set_value(key, value)
            console.print(f"[green]✓[/green] Set {key} = {value}")

        else:
            console.print(f"[red]✗[/red] Unknown action: {action}")
            console.print("Valid actions: show, path, set")
            sys.exit(1)

    except ConfigError as e:
        console.print(f"[red]✗[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    app()
