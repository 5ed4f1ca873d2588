"""
Configuration loading for the Markov dictionary.

Settings live in YAML files inside a config directory. An environment-specific
file (``markov_<environment>.yaml``) wins over the shared ``markov.yaml``; the
first readable one is laid over `DEFAULT_CONFIG`.
"""

import os
import logging

import yaml

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV_VAR = "MARKOV_CONFIG_DIR"

DEFAULT_CONFIG = {
    # Number of tokens in a context key
    "depth": 2,
    # Sentence starts allowed before sentence generation gives up
    "max_attempts": 100,
    # Tokens a single sentence may grow to before it is discarded
    "max_sentence_tokens": 200,
    "random_seed": None,
    "log_file": None,
    "console_json": True,
}


def default_config_dir():
    """Return the config directory from the environment, or ./configs."""
    return os.environ.get(CONFIG_DIR_ENV_VAR) or os.path.join(os.getcwd(), "configs")


def load_config(environment="development", config_dir=None, logger=logger):
    """
    Load the configuration for an environment.

    Args:
        environment (str): Environment name ('development', 'test', 'production')
        config_dir (str, optional): Directory holding the YAML files
        logger (logging.Logger): Logger used to report which file was used

    Returns:
        dict: DEFAULT_CONFIG overlaid with the first readable config file
    """
    config = dict(DEFAULT_CONFIG)
    config_dir = config_dir or default_config_dir()

    config_paths = [
        os.path.join(config_dir, f"markov_{environment}.yaml"),
        os.path.join(config_dir, "markov.yaml"),
    ]

    for config_path in config_paths:
        if not os.path.exists(config_path):
            continue
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Error loading config from {config_path}: {e}")
            continue

        if not isinstance(loaded, dict):
            logger.warning(f"Ignoring config {config_path}: expected a mapping", extra={
                "metrics": {"config_path": config_path, "type": type(loaded).__name__}
            })
            continue

        config.update(
            {key: value for key, value in loaded.items() if key in DEFAULT_CONFIG})
        logger.info(f"Loaded config from {config_path}", extra={
            "metrics": {"config_path": config_path, "environment": environment}
        })
        return config

    logger.info("No config file found, using defaults", extra={
        "metrics": {"config_dir": config_dir, "environment": environment}
    })
    return config
