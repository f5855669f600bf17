"""
Main entry point for the eksblueprint CLI.
"""

import click
import logging

from eksblueprint.CustomLogging import setup_logging
from eksblueprint.cli.ConfigCommands import config
from eksblueprint.cli.InfrastructureCommands import infra
from eksblueprint.cli.PipelineCommands import pipeline
from eksblueprint.cli.PolicyCommands import policy
from eksblueprint.cli.RegistryCommands import registry
from eksblueprint.cli.ServiceCommands import serve


class OrderCommands(click.Group):
    def list_commands(self, ctx: click.Context) -> list[str]:
        return list(self.commands)


@click.group(cls=OrderCommands)
@click.option('--debug', is_flag=True, help="Enable debug logging.")
def cli(debug):
    """
    eksblueprint CLI for the hello service, its pipeline and its infrastructure.
    """
    setup_logging(level=logging.DEBUG if debug else None)


cli.add_command(config)
cli.add_command(serve)
cli.add_command(policy)
cli.add_command(pipeline)
cli.add_command(registry)
cli.add_command(infra)


def main():
    """
    eksblueprint Command Line Interface.
    This function is the entry point when the `eksblueprint` command is run.
    """
    # Load YAML configuration first to set environment variables
    try:
        from eksblueprint.config import load_config
        load_config()
    except Exception as e:
        # Don't fail CLI startup if config loading fails, just log a warning
        logging.warning(f"Failed to load YAML configuration: {e}")

    cli()


if __name__ == '__main__':
    main()
