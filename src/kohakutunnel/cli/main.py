"""
KohakuTunnel CLI entry point.

Usage:
    kohakutunnel [OPTIONS] COMMAND [ARGS]...

Commands:
    serve     Run the tunnel server
    link      Print client share links
    probe     Open a test tunnel through a server
    version   Show version information
"""

import typer

from kohakutunnel.cli.commands import link, probe, serve
from kohakutunnel.cli.output import console

app = typer.Typer(
    name="kohakutunnel",
    help="KohakuTunnel WebSocket tunnel server",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register commands
app.command("serve")(serve.serve)
app.command("link")(link.link)
app.command("probe")(probe.probe)


@app.command("version")
def version():
    """Show version information."""
    from kohakutunnel import __version__

    console.print(f"KohakuTunnel v{__version__}")


def run():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
