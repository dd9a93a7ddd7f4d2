"""
Configuration import/export for viewer settings.

Exports and imports viewer configurations (source, subject filter, camera and
display settings) to/from YAML files.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import yaml

from src.lssview.config.settings import ViewerConfig
from src.shared.exceptions import ConfigError

if TYPE_CHECKING:
    from src.domain.entities import CameraPose

logger = logging.getLogger(__name__)


def export_viewer_config(
    config: ViewerConfig,
    output_path: Path | str,
    pose: CameraPose | None = None,
) -> None:
    """
    Export viewer configuration to a YAML file.

    Parameters
    ----------
    config : ViewerConfig
        Viewer configuration
    output_path : Path | str
        Path to output YAML file
    pose : CameraPose | None
        Current camera pose, written under ``camera_pose`` for reference only;
        it is ignored on import since every load re-frames the camera
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    export_data = config.to_dict()
    if pose is not None:
        export_data["camera_pose"] = pose.to_dict()

    with open(output_path, "w") as f:
        yaml.safe_dump(export_data, f, default_flow_style=False, sort_keys=False)

    logger.info(f"Exported viewer config to {output_path}")


def import_viewer_config(input_path: Path | str) -> ViewerConfig:
    """
    Import viewer configuration from a YAML file.

    Parameters
    ----------
    input_path : Path | str
        Path to input YAML file

    Returns
    -------
    ViewerConfig
        Parsed configuration (not yet validated)

    Raises
    ------
    ConfigError
        If the file is missing, is not valid YAML, or contains unknown keys
    """
    input_path = Path(input_path)

    if not input_path.exists():
        raise ConfigError("Config file not found", config_path=str(input_path))

    try:
        with open(input_path, "r") as f:
            import_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}", config_path=str(input_path)) from e

    if not import_data:
        raise ConfigError("Empty config file", config_path=str(input_path))
    if not isinstance(import_data, dict):
        raise ConfigError("Config root must be a mapping", config_path=str(input_path))

    import_data.pop("camera_pose", None)

    try:
        config = ViewerConfig.from_dict(import_data)
    except ConfigError as e:
        raise ConfigError(str(e), config_path=str(input_path)) from e
    except TypeError as e:
        raise ConfigError(f"Invalid config: {e}", config_path=str(input_path)) from e

    logger.info(f"Imported viewer config from {input_path}")
    return config
