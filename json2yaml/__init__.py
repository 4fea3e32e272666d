"""json2yaml: convert JSON to YAML from the command line or a local web GUI."""

from .config import load_config
from .converter import convert_json_to_yaml
from .types import (
    ConversionError,
    Json2YamlConfig,
    LifecycleConfig,
    LifecycleState,
    OutputConfig,
    ServerConfig,
)

__version__ = "1.0.0"

__all__ = [
    "convert_json_to_yaml",
    "load_config",
    "ConversionError",
    "Json2YamlConfig",
    "LifecycleConfig",
    "LifecycleState",
    "OutputConfig",
    "ServerConfig",
]
