"""Default locations for tracker models and parameter files.

Centralizes model storage to ``~/.facefit/models`` by default.
Override with ``FACEFIT_MODELS_DIR`` or ``FACEFIT_HOME`` environment variables.
"""

import os
from pathlib import Path

DEFAULT_MODEL_NAME = "lbfmodel.yaml"
DEFAULT_PARAMS_NAME = "tracker_params.yaml"


def get_home_dir() -> Path:
    """Return the facefit home directory.

    Resolution order:
        1. ``FACEFIT_HOME`` environment variable.
        2. ``~/.facefit`` (default).

    The directory is not created; facefit only ever reads from it.
    """
    home = os.environ.get("FACEFIT_HOME")
    if home:
        return Path(home)
    return Path.home() / ".facefit"


def get_models_dir() -> Path:
    """Return the models directory.

    Resolution order:
        1. ``FACEFIT_MODELS_DIR`` environment variable (absolute or relative to CWD).
        2. ``{home}/models`` where *home* is from :func:`get_home_dir`.

    Returns:
        Absolute path to the models directory.
    """
    env_val = os.environ.get("FACEFIT_MODELS_DIR")
    if env_val:
        models_dir = Path(env_val)
        if not models_dir.is_absolute():
            models_dir = Path.cwd() / models_dir
        return models_dir
    return get_home_dir() / "models"


def default_model_path() -> str:
    """Pathname of the landmark model used when ``--model`` is not given."""
    return str(get_models_dir() / DEFAULT_MODEL_NAME)


def default_params_path() -> str:
    """Pathname of the tracker parameters used when ``--params`` is not given."""
    return str(get_models_dir() / DEFAULT_PARAMS_NAME)
