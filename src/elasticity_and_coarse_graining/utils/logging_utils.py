import argparse
import logging
import os
import socket
import sys
from logging import StreamHandler
from logging.handlers import WatchedFileHandler
from typing import List, Optional

from git import InvalidGitRepositoryError, Repo
from pip._internal.operations import freeze

logger = logging.getLogger(__name__)

LOGGING_FORMAT = "%(asctime)s - %(filename)s:%(lineno)s - %(funcName)20s() - %(message)s"

LOG_FILE_NAME = "console.log"


def configure_logging(
    output_directory: str,
    logger: Optional[logging.Logger] = None,
    log_to_console: bool = False,
    level: int = logging.INFO,
):
    """Configure logging.

    Every run writes its log to a file with a fixed name in its output directory. Calling this
    method again (for example, for a new run in the same process) replaces the previous handlers.

    Args:
        output_directory : directory where the log file will be written.
        logger : the logger to configure. Defaults to the root logger.
        log_to_console : if True, also log to stdout.
        level : logging level.

    Returns:
        no output.
    """
    if logger is None:
        logger = logging.getLogger()

    logging.captureWarnings(capture=True)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if type(handler) is WatchedFileHandler or type(handler) is StreamHandler:
            logger.removeHandler(handler)
            handler.close()

    list_handlers = [WatchedFileHandler(os.path.join(output_directory, LOG_FILE_NAME))]
    if log_to_console:
        list_handlers.append(StreamHandler(stream=sys.stdout))

    formatter = logging.Formatter(LOGGING_FORMAT)
    for handler in list_handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)


def get_git_hash(script_location: str) -> str:
    """Find the git hash of the repository containing a script.

    Args:
        script_location: path to a python script inside the repository.

    Returns:
        git_hash: the hash of the current commit, or a message if the script is not in a git repository.
    """
    if not script_location.endswith(".py"):
        raise ValueError("script_location should point to a python script")
    try:
        repo = Repo(os.path.dirname(script_location), search_parent_directories=True)
        return str(repo.head.commit)
    except (InvalidGitRepositoryError, ValueError):
        return "git repository not found"


def _get_input_paths(args: argparse.Namespace) -> List[str]:
    """The command line arguments that point to existing files or directories."""
    input_paths = []
    for name, value in sorted(vars(args).items()):
        values = value if isinstance(value, list) else [value]
        for path in values:
            if isinstance(path, str) and os.path.exists(path) and name != "output_directory":
                input_paths.append(f"{name}: {os.path.abspath(path)}")
    return input_paths


def log_run_details(script_location: str, args: argparse.Namespace):
    """Log what is needed to reproduce a run: host, code version, inputs and installed packages.

    Args:
        script_location: path to the entry point script.
        args: the parsed command line arguments.
    """
    details = [f"hostname: {socket.gethostname()}", f"git code hash: {get_git_hash(script_location)}"]

    input_paths = _get_input_paths(args)
    if len(input_paths) == 0:
        details.append("NO INPUT FILE PROVIDED")
    else:
        details.append("inputs:")
        details += [f"    {input_path}" for input_path in input_paths]

    details.append("dependencies:")
    details += list(freeze.freeze())

    logger.info("Run info:\n" + "\n".join(details) + "\n")
