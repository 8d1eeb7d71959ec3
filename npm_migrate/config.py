#!/usr/bin/env python3

import os
import json
import tomllib
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import logging
import sys

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("npm_migrate")

ENV_PREFIX = "NPM_MIGRATE_"


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. NPM_MIGRATE_CONFIG environment variable
    2. ~/.npm-migrate/ directory
    """
    if 'NPM_MIGRATE_CONFIG' in os.environ:
        path = Path(os.environ['NPM_MIGRATE_CONFIG'])
        if path.exists():
            return path

    config_dir = Path.home() / '.npm-migrate'
    for filename in ['config.json', 'config.toml', 'config.yaml', 'config.yml']:
        path = config_dir / filename
        if path.exists():
            return path

    return config_dir / 'config.json'


def get_default_config():
    """Get default configuration."""
    return {
        "http": {
            "timeout_seconds": 30,
            "user_agent": "migrate-npm-registry",
        },
        "migrate": {
            "force": False,
            "pinned_version": None,
            "work_dir": None,
            "parallel_jobs": 4,
            "parallel_transfers": 4,
            "parallel_publishes": 4,
        },
        "publish": {
            "command": ["npm", "publish"],
        },
        "logging": {
            "level": "INFO",
        },
    }


def load_config():
    """Load configuration from file."""
    config_path = get_config_path()

    config = get_default_config()

    if config_path.exists():
        try:
            if config_path.suffix.lower() in ['.toml']:
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif config_path.suffix.lower() in ['.yaml', '.yml']:
                import yaml
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                with open(config_path, 'r') as f:
                    file_config = json.load(f)

            config = merge_configs(config, file_config)
        except Exception as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    return apply_env_overrides(config)


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: NPM_MIGRATE_SECTION_KEY
    For example: NPM_MIGRATE_MIGRATE_PARALLEL_JOBS=8
    """
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX) or env_key == 'NPM_MIGRATE_CONFIG':
            continue

        key_parts = env_key[len(ENV_PREFIX):].lower().split('_')

        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Longest config key matching the remaining env parts wins
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i : i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if not matched_key:
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                break

    return config


@dataclass(frozen=True)
class MigrationConfig:
    """
    Immutable settings shared by every migration job.

    Built once at startup from the loaded configuration and the two
    registry endpoints given on the command line.
    """
    source_registry: str
    target_registry: str
    force: bool = False
    pinned_version: Optional[str] = None
    work_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    timeout: Optional[float] = 30
    user_agent: str = "migrate-npm-registry"
    publish_command: Tuple[str, ...] = ("npm", "publish")
    parallel_jobs: int = 4
    parallel_transfers: int = 4
    parallel_publishes: int = 4

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        source_registry: str,
        target_registry: str,
    ) -> 'MigrationConfig':
        http = config.get('http', {})
        migrate = config.get('migrate', {})
        publish = config.get('publish', {})

        work_dir = migrate.get('work_dir')
        pin = migrate.get('pinned_version')
        if pin == '':
            pin = None
        command = publish.get('command') or ["npm", "publish"]
        if isinstance(command, str):
            command = command.split()

        return cls(
            source_registry=source_registry,
            target_registry=target_registry,
            force=bool(migrate.get('force', False)),
            pinned_version=str(pin) if pin is not None else None,
            work_dir=Path(work_dir).expanduser() if work_dir else Path(tempfile.gettempdir()),
            timeout=http.get('timeout_seconds') or None,
            user_agent=http.get('user_agent', "migrate-npm-registry"),
            publish_command=tuple(command),
            parallel_jobs=max(1, int(migrate.get('parallel_jobs', 4))),
            parallel_transfers=max(1, int(migrate.get('parallel_transfers', 4))),
            parallel_publishes=max(1, int(migrate.get('parallel_publishes', 4))),
        )
