"""Load projection and equilibrium assumptions from YAML.

User files are layered over the packaged `defaults.yaml` section by section,
so a file that only changes the equilibrium sliders keeps the default
projection assumptions and model constants.
"""

import copy
import logging
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..errors import InvalidInputError
from .schema import Config

logger = logging.getLogger(__name__)

DEFAULTS_RESOURCE = "defaults.yaml"


def _parse_mapping(text: str, source: str) -> Dict[str, Any]:
    data = yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidInputError(
            f"Config {source} must be a mapping of sections, got {type(data).__name__}"
        )
    return data


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively overlay `override` on a copy of `base`."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def default_config_data() -> Dict[str, Any]:
    """Raw contents of the packaged defaults file."""
    text = resources.files(__package__).joinpath(DEFAULTS_RESOURCE).read_text(encoding="utf-8")
    return _parse_mapping(text, DEFAULTS_RESOURCE)


def load_config(yaml_path: Optional[Union[str, Path]] = None) -> Config:
    """
    Load configuration from a YAML file layered over the packaged defaults.

    Args:
        yaml_path: Path to a YAML file; None loads the defaults alone

    Returns:
        Config object

    Raises:
        InvalidInputError: If the file is not a mapping of sections
        pydantic.ValidationError: If a merged value is out of range
    """
    if yaml_path is None:
        return config_from_dict({})

    path = Path(yaml_path)
    logger.debug("Loading config overrides from %s", path)
    return config_from_dict(_parse_mapping(path.read_text(encoding="utf-8"), str(path)))


def config_from_dict(data: Dict[str, Any]) -> Config:
    """
    Create config from a (possibly partial) dictionary.

    Sections and keys missing from `data` take their packaged default.
    """
    return Config.from_dict(_merge(default_config_data(), data))
