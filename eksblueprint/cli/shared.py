"""
Helpers shared by CLI command modules.
"""

import click

from eksblueprint.config.settings import BlueprintSettings
from eksblueprint.errors import ConfigurationError


def get_settings(validate: bool = True) -> BlueprintSettings:
    """Build settings from the environment, turning invalid settings into a CLI error."""
    try:
        settings = BlueprintSettings.from_environment()
        return settings.validate() if validate else settings
    except ConfigurationError as e:
        raise click.ClickException(str(e))
