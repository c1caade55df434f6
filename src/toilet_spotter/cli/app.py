"""``toilet-spotter`` command line entry point."""

import typer

from toilet_spotter import __version__
from toilet_spotter.core.config import get_settings
from toilet_spotter.core.logging import setup_logging

app = typer.Typer(
    name="toilet-spotter",
    help="Find, share and vote on toilet access codes near you",
    no_args_is_help=True,
)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"toilet-spotter {__version__}")
        raise typer.Exit


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
    _version: bool = typer.Option(
        False, "--version", callback=_print_version, is_eager=True, help="Show the version and exit"
    ),
) -> None:
    """Set up logging before any command runs."""
    settings = get_settings()
    setup_logging(
        "DEBUG" if verbose else settings.log_level,
        log_dir=settings.log_dir,
        json_logs=settings.log_json,
    )


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("toilet_spotter.main:create_app", factory=True, host=host, port=port, reload=reload)


def _register_subcommands() -> None:
    from toilet_spotter.cli.codes_cmd import add, device_id, map_view, nearby, vote
    from toilet_spotter.cli.db_cmd import db_app
    from toilet_spotter.cli.seed_cmd import seed

    app.add_typer(db_app, name="db", help="Schema migrations and table creation")
    for name, command in (
        ("nearby", nearby),
        ("add", add),
        ("vote", vote),
        ("map", map_view),
        ("device-id", device_id),
        ("seed", seed),
    ):
        app.command(name)(command)


_register_subcommands()
