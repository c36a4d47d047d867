"""
Compiler Configuration

Resolves the settings shared by every stage of the action: where the external
compiler lives, how many compile workers to run, and the strictness of archive
read-back. Settings are layered with OmegaConf:

    structured defaults  <  YAML file (explicit or $RESLIB_CONFIG)  <  dotted overrides

Examples:
    >>> config = load_compiler_config(overrides=["max_workers=4"])
    >>> config.max_workers
    4
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException

from reslib.utils.exceptions import ConfigurationError

load_dotenv()

DEFAULT_MAX_WORKERS = 15


@dataclass
class CompilerConfig:
    """
    Settings for the external compiler and the pipeline around it.

    Attributes:
        aapt2: Path to the aapt2 binary (defaults to $AAPT2, else looked up on PATH)
        build_tools_version: Build tools revision, recorded as provenance only
        generate_pseudo_locale: Ask the compiler to emit pseudo-localized strings
        use_data_binding_androidx: Record the androidx data binding runtime in metadata
        max_workers: Size of the compile worker pool
        include_file_contents_for_validation: Verify payload checksums when reading archives back
    """

    aapt2: Optional[str] = None
    build_tools_version: Optional[str] = None
    generate_pseudo_locale: bool = False
    use_data_binding_androidx: bool = False
    max_workers: int = DEFAULT_MAX_WORKERS
    include_file_contents_for_validation: bool = False


def load_compiler_config(
    config_path: Optional[Path] = None,
    overrides: Optional[List[str]] = None,
) -> CompilerConfig:
    """
    Load compiler configuration from defaults, an optional YAML file and overrides.

    Args:
        config_path: Optional YAML file (defaults to RESLIB_CONFIG env variable, if set)
        overrides: Dotted ``key=value`` overrides (e.g., ["max_workers=4"])

    Returns:
        Fully resolved CompilerConfig

    Raises:
        ConfigurationError: If the file is missing, a key is unknown, or a value is invalid
    """
    if config_path is None and os.getenv("RESLIB_CONFIG"):
        config_path = Path(os.getenv("RESLIB_CONFIG"))

    schema = OmegaConf.structured(CompilerConfig)
    if schema.aapt2 is None and os.getenv("AAPT2"):
        schema.aapt2 = os.getenv("AAPT2")

    layers = [schema]
    try:
        if config_path is not None:
            config_path = Path(config_path)
            if not config_path.exists():
                raise ConfigurationError(f"Config file not found: {config_path}")
            layers.append(OmegaConf.load(config_path))
        if overrides:
            layers.append(OmegaConf.from_dotlist(list(overrides)))
        merged = OmegaConf.merge(*layers)
    except OmegaConfBaseException as e:
        raise ConfigurationError(f"Invalid compiler configuration: {e}") from e

    config = OmegaConf.to_object(merged)

    if config.max_workers < 1:
        raise ConfigurationError(f"max_workers must be positive, got {config.max_workers}")

    return config
