"""Configuration management for the AWS session token tool."""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from .exceptions import ConfigurationError

DEFAULT_PROFILE = "home"
DEFAULT_LOAD_TIMEOUT = 120.0
PROFILE_ENV_VAR = "AWS_SESSION_TOKEN_PROFILE"

# GetSessionToken limits for IAM users
MIN_DURATION_SECONDS = 900
MAX_DURATION_SECONDS = 129600

VALID_FORMATS = ['token', 'env', 'json', 'table']


@dataclass
class AWSConfig:
    """AWS configuration settings."""
    profile: str = DEFAULT_PROFILE
    region: Optional[str] = None  # Fallback when the profile has no region
    load_timeout: float = DEFAULT_LOAD_TIMEOUT
    duration_seconds: Optional[int] = None
    mfa_serial: Optional[str] = None


@dataclass
class OutputConfig:
    """Output format configuration."""
    format: str = "token"  # Options: "token", "env", "json", "table"


@dataclass
class Config:
    """Main configuration object."""
    aws: AWSConfig = field(default_factory=AWSConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


class ConfigurationManager:
    """Merges defaults, the optional config file, environment and CLI flags."""

    @staticmethod
    def load_config(file_path: Optional[str] = None,
                    overrides: Optional[Dict[str, Any]] = None) -> Config:
        """
        Load and validate configuration.

        Precedence, lowest first: defaults, YAML file, environment, overrides.

        Args:
            file_path: Optional path to a YAML configuration file
            overrides: Values from the command line; None entries are ignored

        Returns:
            Config object with validated settings

        Raises:
            ConfigurationError: If the file is missing or invalid, or a value is out of range
        """
        data = ConfigurationManager._read_file(file_path) if file_path else {}

        aws_data = data.get('aws') or {}
        output_data = data.get('output') or {}
        if not isinstance(aws_data, dict):
            raise ConfigurationError("Configuration section 'aws' must be an object/dictionary")
        if not isinstance(output_data, dict):
            raise ConfigurationError("Configuration section 'output' must be an object/dictionary")

        merged = dict(aws_data)
        if output_data.get('format') is not None:
            merged['format'] = output_data['format']

        env_profile = os.environ.get(PROFILE_ENV_VAR)
        if env_profile:
            merged['profile'] = env_profile

        for key, value in (overrides or {}).items():
            if value is not None:
                merged[key] = value

        return Config(
            aws=ConfigurationManager._parse_aws_config(merged),
            output=ConfigurationManager._parse_output_config(merged)
        )

    @staticmethod
    def _read_file(file_path: str) -> dict:
        """Parse the YAML configuration file."""
        if not os.path.exists(file_path):
            raise ConfigurationError(f"Configuration file not found: {file_path}")

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            error_msg = f"Invalid YAML syntax in configuration file: {file_path}"
            if hasattr(e, 'problem_mark'):
                mark = e.problem_mark
                error_msg += f" (line {mark.line + 1}, column {mark.column + 1})"
            if hasattr(e, 'problem'):
                error_msg += f"\n{e.problem}"
            raise ConfigurationError(error_msg) from e
        except OSError as e:
            raise ConfigurationError(f"Error reading configuration file: {file_path}: {str(e)}") from e

        # An empty file is a valid, empty configuration
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration file must contain a YAML object/dictionary")
        return data

    @staticmethod
    def _parse_aws_config(data: dict) -> AWSConfig:
        """Validate AWS settings."""
        profile = data.get('profile', DEFAULT_PROFILE)
        if not profile or not isinstance(profile, str):
            raise ConfigurationError("Field 'aws.profile' must be a non-empty string")

        region = data.get('region')
        if region is not None and (not region or not isinstance(region, str)):
            raise ConfigurationError("Field 'aws.region' must be a non-empty string")

        load_timeout = data.get('load_timeout', DEFAULT_LOAD_TIMEOUT)
        if isinstance(load_timeout, bool) or not isinstance(load_timeout, (int, float)) or load_timeout <= 0:
            raise ConfigurationError("Field 'aws.load_timeout' must be a positive number of seconds")

        duration = data.get('duration_seconds')
        if duration is not None:
            if isinstance(duration, bool) or not isinstance(duration, int):
                raise ConfigurationError("Field 'aws.duration_seconds' must be an integer")
            if not MIN_DURATION_SECONDS <= duration <= MAX_DURATION_SECONDS:
                raise ConfigurationError(
                    f"Field 'aws.duration_seconds' must be between {MIN_DURATION_SECONDS} "
                    f"and {MAX_DURATION_SECONDS}, got {duration}"
                )

        mfa_serial = data.get('mfa_serial')
        if mfa_serial is not None and (not mfa_serial or not isinstance(mfa_serial, str)):
            raise ConfigurationError("Field 'aws.mfa_serial' must be a non-empty string")

        return AWSConfig(
            profile=profile,
            region=region,
            load_timeout=float(load_timeout),
            duration_seconds=duration,
            mfa_serial=mfa_serial
        )

    @staticmethod
    def _parse_output_config(data: dict) -> OutputConfig:
        """Validate output settings."""
        format_type = data.get('format', 'token')
        if format_type not in VALID_FORMATS:
            raise ConfigurationError(
                f"Invalid output format: '{format_type}'. Must be one of: {', '.join(VALID_FORMATS)}"
            )
        return OutputConfig(format=format_type)
