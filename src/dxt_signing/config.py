"""
Configuration for the dxt-signing CLI.

Values come from environment variables with the DXT_ prefix; command-line
flags override them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


# Environment variable prefix
ENV_PREFIX = "DXT_"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class DxtConfig:
    """CLI configuration."""

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    # Verification
    check_manifest_digest: bool = False


def load_config_from_env(environ: dict[str, str] | None = None) -> DxtConfig:
    """Load configuration from environment variables."""
    env = os.environ if environ is None else environ
    config = DxtConfig()

    config.log_level = env.get(f"{ENV_PREFIX}LOG_LEVEL", config.log_level).upper()
    config.log_file = env.get(f"{ENV_PREFIX}LOG_FILE") or None

    flag = env.get(f"{ENV_PREFIX}CHECK_MANIFEST_DIGEST")
    if flag:
        config.check_manifest_digest = flag.strip().lower() in _TRUE_VALUES

    return config
