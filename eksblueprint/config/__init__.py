"""
eksblueprint configuration: YAML loading and typed settings.
"""

from .loader import ConfigLoader, load_config
from .settings import BlueprintSettings, load_settings

__all__ = ['ConfigLoader', 'load_config', 'BlueprintSettings', 'load_settings']
