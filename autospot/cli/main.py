"""
Command line entry point for AutoSpot.

Runs a single invocation: a periodic scan of every region, or the
handling of one event read from a file or stdin.
"""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from autospot.core.config import ConfigManager
from autospot.services.controller import FleetController
from autospot.core.exceptions import (
    AutoSpotError, ConfigurationError, MalformedEventError, MetadataLoadError, ServiceError
)


console = Console()

# Exit codes for different error types
EXIT_SUCCESS = 0
EXIT_GENERAL_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_SERVICE_ERROR = 4
EXIT_MALFORMED_EVENT = 5
EXIT_METADATA_ERROR = 6
EXIT_USER_CANCELLED = 130


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Configuration file (defaults to ~/.autospot/config.json)",
)
@click.option(
    "--event",
    "event_file",
    type=click.File("r"),
    help="File holding the event to handle, '-' for stdin. Without it a periodic scan runs.",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Enable debug logging",
)
@click.version_option(version="1.0.0")
def main(
    config_path: Optional[Path] = None,
    event_file=None,
    debug: bool = False,
) -> None:
    """
    AutoSpot - replace on-demand instances with spot ones.

    Scans Auto Scaling groups opted into spot replacement and swaps their
    on-demand instances for cheaper spot instances.
    """
    try:
        config = ConfigManager(config_path).load_config()
        if debug:
            config = config.model_copy(update={"debug": True})

        payload = event_file.read() if event_file is not None else None

        controller = FleetController(config)
        trigger = controller.handle_event(payload or None)

        console.print(f"✅ Handled [bold]{type(trigger).__name__}[/bold]")
        console.print(f"💰 Hourly savings: [green]${controller.hourly_savings:.4f}[/green]")

    except KeyboardInterrupt:
        console.print("\n⚠️  [yellow]Operation cancelled by user[/yellow]")
        sys.exit(EXIT_USER_CANCELLED)
    except ConfigurationError as e:
        console.print(f"❌ [red]Configuration error: {e}[/red]")
        sys.exit(EXIT_CONFIG_ERROR)
    except MetadataLoadError as e:
        console.print(f"❌ [red]Instance type data unavailable: {e}[/red]")
        sys.exit(EXIT_METADATA_ERROR)
    except MalformedEventError as e:
        console.print(f"❌ [red]Malformed event: {e}[/red]")
        sys.exit(EXIT_MALFORMED_EVENT)
    except ServiceError as e:
        console.print(f"❌ [red]Service error: {e}[/red]")
        sys.exit(EXIT_SERVICE_ERROR)
    except AutoSpotError as e:
        console.print(f"❌ [red]{e}[/red]")
        sys.exit(EXIT_GENERAL_ERROR)
    except Exception as e:
        console.print(f"💥 [red]Unexpected error: {e}[/red]")
        console.print("[dim]Please report this issue with the full error message.[/dim]")
        sys.exit(EXIT_GENERAL_ERROR)


if __name__ == "__main__":
    main()
