# beneficiary_api/configs/__init__.py
"""
Loads `.env` into `env` and `config.yaml` into `configs` at import time.

`.env` is looked up at the repository root, then in `$ENV_FILE_DIR`; when
neither exists the known keys are read from the process environment.
`${key}` placeholders in the YAML are resolved against the YAML itself and
`<ROOT_PATH>` is replaced by the package directory.
"""
import yaml
import os
import re
import logging
from pathlib import Path
from dotenv import dotenv_values
from typing import Union

logger = logging.getLogger(__name__)


def get_ancestor_dir(start_path: Union[str, Path], steps: int) -> Path:
    if not isinstance(steps, int) or steps < 0:
        raise ValueError("Steps must be a non-negative integer.")

    path = Path(start_path).resolve()
    if path.is_file():
        path = path.parent

    # Traverse up the directory tree the specified number of times
    for _ in range(steps):
        original_path = path
        path = path.parent
        if path == original_path:
            raise ValueError(
                f"Cannot go up {steps} levels from '{start_path}'. "
                "Traversal went beyond the filesystem root."
            )

    return path


def _load_yaml_file(filepath: str):
    """Loads a single YAML file."""
    if os.path.exists(filepath):
        try:
            with open(filepath, "r") as f:
                return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Error loading YAML file '{filepath}': {e}")
            return {}
    logger.warning(f"Config file not found at '{filepath}'")
    return {}


def _load_env(filepath: str):
    """Loads variables from a .env file; missing keys fall back to os.environ."""
    values = dict(dotenv_values(filepath))
    for key in ENV_KEYS:
        if not values.get(key) and os.environ.get(key):
            values[key] = os.environ[key]
    return values


def _resolve_placeholders(data, original_data: dict):
    """
    Recursively replaces placeholder strings (e.g. '${key}') in a dictionary
    or list using top-level values of `original_data`.
    """
    if isinstance(data, dict):
        return {k: _resolve_placeholders(v, original_data) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_placeholders(item, original_data) for item in data]
    elif isinstance(data, str):
        for match in re.findall(r"\$\{(\w+)\}", data):
            replacement_value = original_data.get(match)
            data = data.replace(f"${{{match}}}", f"{replacement_value}")
        return data
    else:
        return data


def recursive_replace(data, old_value, new_value):
    """
    Recursively replace string values in nested dictionaries/lists.
    """
    if isinstance(data, dict):
        return {
            key: recursive_replace(value, old_value, new_value)
            for key, value in data.items()
        }
    elif isinstance(data, list):
        return [recursive_replace(item, old_value, new_value) for item in data]
    elif isinstance(data, str):
        return data.replace(old_value, new_value)
    else:
        return data


def load_file(filename: str, directory: Union[str, Path]):
    filepath = os.path.join(directory, filename)
    if filename.endswith(".env"):
        return _load_env(filepath)
    if filename.endswith((".yaml", ".yml")):
        return _load_yaml_file(filepath)
    raise ValueError(f"Unsupported config file type: {filename}")


def handle_env_path(filedir: Union[str, Path], filename: str = ".env") -> dict:
    if os.path.exists(os.path.join(filedir, filename)):
        return load_file(filename, filedir)
    if os.environ.get("ENV_FILE_DIR"):
        return load_file(filename, os.environ["ENV_FILE_DIR"])
    return dict((key, os.environ.get(key)) for key in ENV_KEYS)


ENV_KEYS = [
    "SECRET_KEY",
    "MONGO_URI",
    "MONGO_DB",
]

REPO_ROOT = get_ancestor_dir(__file__, 2)
CONFIGS_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = Path(CONFIGS_DIR).parent.resolve()

replacements = {"<ROOT_PATH>": str(PROJECT_ROOT)}

env = handle_env_path(REPO_ROOT)

configs = load_file("config.yaml", CONFIGS_DIR)
for key, value in replacements.items():
    configs = recursive_replace(configs, old_value=key, new_value=value)
configs = _resolve_placeholders(configs, configs)
