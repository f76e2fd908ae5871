import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import deepdiff
import yaml

logger = logging.getLogger(__name__)

CONFIG_BACKUP_FILE_NAME = "config_backup.yaml"


def create_output_directory(output_directory: Union[str, Path], resume: bool = False) -> Path:
    """Create the output directory of a run.

    Args:
        output_directory : path to the output directory.
        resume : if True, an existing directory is reused. Otherwise, an existing directory is an error.

    Returns:
        output_directory: the output directory, as a Path.
    """
    output_directory = Path(output_directory)
    if output_directory.is_dir() and resume:
        return output_directory
    if output_directory.is_dir():
        raise Exception(
            f"Output directory {output_directory} already exists! Stopping to avoid overwriting data."
        )
    output_directory.mkdir(parents=True, exist_ok=False)
    return output_directory


def load_and_backup_hyperparameters(
    config_file_path: Optional[str], output_directory: Union[str, Path]
) -> Dict[str, Any]:
    """Load and backup hyperparameters.

    The hyperparameters are read from the configuration file and a copy is written in the output
    directory. If a copy is already there, it must hold the same hyperparameters.

    Args:
        config_file_path : path to the yaml configuration file, if there is one.
        output_directory : directory where results are written.

    Returns:
        hyperparameters: the configuration dictionary. Empty if there is no configuration file.
    """
    hyperparameters = _read_hyperparameters(config_file_path)
    _backup_hyperparameters(Path(output_directory) / CONFIG_BACKUP_FILE_NAME, hyperparameters)
    return hyperparameters


def _read_hyperparameters(config_file_path: Optional[str]) -> Dict[str, Any]:
    if config_file_path is None:
        logger.info("No configuration file was provided: the default parameters are used.")
        return dict()

    logger.info(f"Reading hyperparameters from file {config_file_path}")
    with open(config_file_path, "r") as stream:
        hyperparameters = yaml.safe_load(stream)
    return dict() if hyperparameters is None else hyperparameters


def _backup_hyperparameters(config_backup_path: Path, hyperparameters: Dict[str, Any]):
    if not config_backup_path.is_file():
        logger.info(f"Writing a copy of the configuration to {config_backup_path}.")
        with open(config_backup_path, "w") as stream:
            yaml.dump(hyperparameters, stream)
        return

    logger.info(f"The configuration backup {config_backup_path} already exists. Validating it...")
    with open(config_backup_path, "r") as stream:
        backup_hyperparameters = yaml.safe_load(stream)

    differences = deepdiff.DeepDiff(backup_hyperparameters, hyperparameters)
    assert differences == {}, (
        f"Incompatible configuration backup already present in the output directory! "
        f"The configuration difference is {differences}. Manual clean up is needed."
    )
