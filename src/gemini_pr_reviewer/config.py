"""
Configuration Management

Immutable reviewer settings, built once per run and passed to every component.
"""

import os
import logging
from dataclasses import dataclass, field, replace
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .errors import ConfigurationError


REVIEW_MODES = ("standard", "strict", "lenient", "security", "performance")


def _parse_list(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _parse_number(value: Optional[str], fallback: int) -> int:
    """Positive integer from an env string, otherwise the fallback."""
    try:
        parsed = int(float(value))
    except (TypeError, ValueError):
        return fallback
    return parsed if parsed > 0 else fallback


def _parse_float(value: Optional[str], fallback: float) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return fallback
    return parsed if parsed > 0 else fallback


def _parse_bool(value: Optional[str], fallback: bool) -> bool:
    if value is None:
        return fallback
    return value.strip().lower() == "true"


def _normalize_mode(value: Optional[str]) -> str:
    mode = (value or "standard").strip().lower()
    return mode if mode in REVIEW_MODES else "standard"


@dataclass(frozen=True)
class GitHubConfig:
    """GitHub API settings"""
    token: Optional[str] = None
    api_base_url: str = "https://api.github.com"
    timeout_seconds: int = 30


@dataclass(frozen=True)
class ModelConfig:
    """Generative model settings"""
    api_key: Optional[str] = None
    model_name: str = "gemini-2.5-flash"
    temperature: float = 0.2


@dataclass(frozen=True)
class ReviewConfig:
    """Review behaviour settings"""
    command_trigger: str = "/gemini-review"
    review_mode: str = "standard"
    review_instructions: str = ""
    global_review: bool = True
    repo_context: bool = True
    dry_run: bool = False


@dataclass(frozen=True)
class LimitsConfig:
    """Size caps for files, hunks, lines and comments"""
    include_patterns: Tuple[str, ...] = ()
    exclude_patterns: Tuple[str, ...] = ()
    max_files: int = 50
    max_hunks_per_file: int = 20
    max_lines_per_hunk: int = 500
    global_max_lines: int = 2000
    max_comments: int = 50
    max_concurrency: int = 5


@dataclass(frozen=True)
class RetryConfig:
    """Backoff settings applied to every external call"""
    max_attempts: int = 4
    initial_delay_ms: int = 1000
    backoff_factor: float = 2.0
    max_delay_ms: int = 30_000


@dataclass(frozen=True)
class LoggingConfig:
    """Logging settings"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


@dataclass(frozen=True)
class AppConfig:
    """Complete application settings"""
    github: GitHubConfig = field(default_factory=GitHubConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    review: ReviewConfig = field(default_factory=ReviewConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """Load settings from environment variables"""
        env = os.environ if environ is None else environ
        limits = LimitsConfig()
        retry = RetryConfig()
        return cls(
            github=GitHubConfig(
                token=env.get("GITHUB_TOKEN") or None,
                api_base_url=env.get("GITHUB_API_URL", "https://api.github.com"),
                timeout_seconds=_parse_number(env.get("GITHUB_TIMEOUT"), 30),
            ),
            model=ModelConfig(
                api_key=env.get("GEMINI_API_KEY") or None,
                model_name=env.get("GEMINI_MODEL") or "gemini-2.5-flash",
            ),
            review=ReviewConfig(
                command_trigger=env.get("COMMAND_TRIGGER") or "/gemini-review",
                review_mode=_normalize_mode(env.get("REVIEW_MODE")),
                review_instructions=env.get("REVIEW_INSTRUCTIONS", ""),
                global_review=_parse_bool(env.get("GLOBAL_REVIEW"), True),
                repo_context=_parse_bool(env.get("REPO_CONTEXT"), True),
                dry_run=_parse_bool(env.get("DRY_RUN"), False),
            ),
            limits=LimitsConfig(
                include_patterns=_parse_list(env.get("INCLUDE")),
                exclude_patterns=_parse_list(env.get("EXCLUDE")),
                max_files=_parse_number(env.get("MAX_FILES"), limits.max_files),
                max_hunks_per_file=_parse_number(env.get("MAX_HUNKS_PER_FILE"), limits.max_hunks_per_file),
                max_lines_per_hunk=_parse_number(env.get("MAX_LINES_PER_HUNK"), limits.max_lines_per_hunk),
                global_max_lines=_parse_number(env.get("GLOBAL_MAX_LINES"), limits.global_max_lines),
                max_comments=_parse_number(env.get("MAX_COMMENTS"), limits.max_comments),
                max_concurrency=_parse_number(env.get("MAX_CONCURRENCY"), limits.max_concurrency),
            ),
            retry=RetryConfig(
                max_attempts=_parse_number(env.get("RETRY_MAX_ATTEMPTS"), retry.max_attempts),
                initial_delay_ms=_parse_number(env.get("RETRY_INITIAL_DELAY_MS"), retry.initial_delay_ms),
                backoff_factor=_parse_float(env.get("RETRY_BACKOFF_FACTOR"), retry.backoff_factor),
                max_delay_ms=_parse_number(env.get("RETRY_MAX_DELAY_MS"), retry.max_delay_ms),
            ),
            logging=LoggingConfig(
                level=env.get("LOG_LEVEL", "INFO"),
                format=env.get("LOG_FORMAT", LoggingConfig.format),
                file_path=env.get("LOG_FILE") or None,
            ),
        )

    @classmethod
    def from_yaml(cls, config_path: str) -> "AppConfig":
        """Load settings from a YAML file"""
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        limits_data = dict(config_data.get('limits', {}))
        for key in ('include_patterns', 'exclude_patterns'):
            if key in limits_data:
                limits_data[key] = tuple(limits_data[key] or ())

        review_data = dict(config_data.get('review', {}))
        if 'review_mode' in review_data:
            review_data['review_mode'] = _normalize_mode(review_data['review_mode'])

        try:
            return cls(
                github=GitHubConfig(**config_data.get('github', {})),
                model=ModelConfig(**config_data.get('model', {})),
                review=ReviewConfig(**review_data),
                limits=LimitsConfig(**limits_data),
                retry=RetryConfig(**config_data.get('retry', {})),
                logging=LoggingConfig(**config_data.get('logging', {})),
            )
        except TypeError as e:
            raise ConfigurationError(f"Invalid config file {config_path}: {e}") from e

    def validate(self) -> None:
        """Check required secrets and value ranges"""
        errors = []

        if not self.github.token and not self.review.dry_run:
            errors.append("Missing required env var: GITHUB_TOKEN")
        if not self.model.api_key:
            errors.append("Missing required env var: GEMINI_API_KEY")

        if self.review.review_mode not in REVIEW_MODES:
            errors.append(f"Invalid review mode: {self.review.review_mode}")
        if not self.review.command_trigger.strip():
            errors.append("Command trigger cannot be empty")

        for name in ('max_files', 'max_hunks_per_file', 'max_lines_per_hunk',
                     'max_comments', 'max_concurrency'):
            if getattr(self.limits, name) <= 0:
                errors.append(f"{name} must be positive")
        if self.limits.global_max_lines < 0:
            errors.append("global_max_lines must be non-negative")

        if self.retry.max_attempts <= 0:
            errors.append("Retry max_attempts must be positive")

        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.logging.level.upper() not in valid_log_levels:
            errors.append(f"Invalid log level: {self.logging.level}")

        if errors:
            raise ConfigurationError(f"Configuration validation failed: {'; '.join(errors)}")

    def with_safety_limits(self) -> "AppConfig":
        """Clamp caps to small values for local simulation runs"""
        limits = replace(
            self.limits,
            max_files=min(self.limits.max_files, 1),
            max_hunks_per_file=min(self.limits.max_hunks_per_file, 1),
            max_lines_per_hunk=min(self.limits.max_lines_per_hunk, 50),
            global_max_lines=min(self.limits.global_max_lines, 500),
        )
        return replace(self, limits=limits)

    def to_dict(self) -> Dict[str, Any]:
        """Settings as a dictionary, secrets excluded"""
        return {
            'github': {
                'api_base_url': self.github.api_base_url,
                'timeout_seconds': self.github.timeout_seconds,
            },
            'model': {
                'model_name': self.model.model_name,
                'temperature': self.model.temperature,
            },
            'review': {
                'command_trigger': self.review.command_trigger,
                'review_mode': self.review.review_mode,
                'global_review': self.review.global_review,
                'repo_context': self.review.repo_context,
                'dry_run': self.review.dry_run,
            },
            'limits': {
                'include_patterns': list(self.limits.include_patterns),
                'exclude_patterns': list(self.limits.exclude_patterns),
                'max_files': self.limits.max_files,
                'max_hunks_per_file': self.limits.max_hunks_per_file,
                'max_lines_per_hunk': self.limits.max_lines_per_hunk,
                'global_max_lines': self.limits.global_max_lines,
                'max_comments': self.limits.max_comments,
                'max_concurrency': self.limits.max_concurrency,
            },
            'retry': {
                'max_attempts': self.retry.max_attempts,
                'initial_delay_ms': self.retry.initial_delay_ms,
                'backoff_factor': self.retry.backoff_factor,
                'max_delay_ms': self.retry.max_delay_ms,
            },
        }


def configure_logging(config: LoggingConfig) -> None:
    """Set up root logging, with rotation when a log file is configured"""
    logging.basicConfig(
        level=getattr(logging, config.level.upper(), logging.INFO),
        format=config.format,
    )

    if config.file_path:
        handler = RotatingFileHandler(
            config.file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
        )
        handler.setFormatter(logging.Formatter(config.format))
        logging.getLogger().addHandler(handler)
