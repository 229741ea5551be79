"""
bootstrap/config.py - Application configuration

Provides configuration loading from files, environment variables, and defaults.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from pathlib import Path
import os
import json
import logging

logger = logging.getLogger("bootstrap.config")

ENV_PREFIX = "SITECASCADE_"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _env_bool(name: str, default: bool) -> bool:
    return _env(name, "true" if default else "false").lower() == "true"


@dataclass
class RiskConfig:
    """Thresholds for impacted phase risk levels."""

    high_delay_days: int = 7
    medium_delay_days: int = 3
    medium_depth: int = 2

    @classmethod
    def from_env(cls) -> "RiskConfig":
        return cls(
            high_delay_days=int(_env("RISK_HIGH_DAYS", "7")),
            medium_delay_days=int(_env("RISK_MEDIUM_DAYS", "3")),
            medium_depth=int(_env("RISK_MEDIUM_DEPTH", "2")),
        )


@dataclass
class SequencingConfig:
    """
    Implicit construction sequencing.

    categories: list of {"name", "order", "keywords"}; empty means the
    built-in Foundation/Skeleton/Systems/Finishes table.
    """

    categories: List[Dict[str, Any]] = field(default_factory=list)
    enabled: bool = True

    @classmethod
    def from_env(cls) -> "SequencingConfig":
        return cls(enabled=_env_bool("SEQUENCING_ENABLED", True))


@dataclass
class AdvisorConfig:
    """Optional LLM recommendation advisor."""

    enabled: bool = False
    timeout_seconds: float = 20.0
    region: str = ""

    @classmethod
    def from_env(cls) -> "AdvisorConfig":
        return cls(
            enabled=_env_bool("ADVISOR_ENABLED", False),
            timeout_seconds=float(_env("ADVISOR_TIMEOUT", "20.0")),
            region=_env("ADVISOR_REGION", ""),
        )


@dataclass
class LLMConfig:
    """LLM provider configuration."""

    provider: str = "anthropic"
    model: str = ""
    api_key: str = ""
    base_url: Optional[str] = None  # For local LLM (Ollama)
    max_tokens: int = 2048
    temperature: float = 0.2
    timeout_seconds: float = 30
    retry_attempts: int = 1
    retry_delay_ms: int = 500

    @classmethod
    def from_env(cls) -> "LLMConfig":
        return cls(
            provider=_env("LLM_PROVIDER", "anthropic"),
            model=_env("LLM_MODEL", ""),
            api_key=_env("LLM_API_KEY", os.getenv("ANTHROPIC_API_KEY", "")),
            base_url=_env("LLM_BASE_URL"),
            max_tokens=int(_env("LLM_MAX_TOKENS", "2048")),
            temperature=float(_env("LLM_TEMPERATURE", "0.2")),
            timeout_seconds=float(_env("LLM_TIMEOUT", "30")),
            retry_attempts=int(_env("LLM_RETRY_ATTEMPTS", "1")),
            retry_delay_ms=int(_env("LLM_RETRY_DELAY_MS", "500")),
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_file: Optional[str] = None
    json_logs: bool = False

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        return cls(
            level=_env("LOG_LEVEL", "INFO"),
            format=_env("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
            log_file=_env("LOG_FILE"),
            json_logs=_env_bool("JSON_LOGS", False),
        )


_SECTIONS = ("risk", "sequencing", "advisor", "llm", "logging")


@dataclass
class CascadeConfig:
    """Root configuration for SiteCascade."""

    environment: str = "development"
    version: str = "1.0.0"

    risk: RiskConfig = field(default_factory=RiskConfig)
    sequencing: SequencingConfig = field(default_factory=SequencingConfig)
    advisor: AdvisorConfig = field(default_factory=AdvisorConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> "CascadeConfig":
        """Create configuration from environment variables."""
        return cls(
            environment=_env("ENVIRONMENT", "development"),
            risk=RiskConfig.from_env(),
            sequencing=SequencingConfig.from_env(),
            advisor=AdvisorConfig.from_env(),
            llm=LLMConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )

    @classmethod
    def from_file(cls, filepath: str) -> "CascadeConfig":
        """Load configuration from JSON file, layered over the environment."""
        path = Path(filepath)
        if not path.exists():
            logger.warning(f"Config file not found: {filepath}, using defaults")
            return cls.from_env()

        with open(path) as f:
            data = json.load(f)

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "CascadeConfig":
        config = cls.from_env()

        if "environment" in data:
            config.environment = data["environment"]

        for section in _SECTIONS:
            values = data.get(section)
            if not isinstance(values, dict):
                continue
            target = getattr(config, section)
            for key, value in values.items():
                if hasattr(target, key):
                    setattr(target, key, value)
                else:
                    logger.warning(f"Unknown config key ignored: {section}.{key}")

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Serialize config to dictionary. The API key is never included."""
        return {
            "environment": self.environment,
            "version": self.version,
            "risk": {
                "high_delay_days": self.risk.high_delay_days,
                "medium_delay_days": self.risk.medium_delay_days,
                "medium_depth": self.risk.medium_depth,
            },
            "sequencing": {
                "categories": list(self.sequencing.categories),
                "enabled": self.sequencing.enabled,
            },
            "advisor": {
                "enabled": self.advisor.enabled,
                "timeout_seconds": self.advisor.timeout_seconds,
                "region": self.advisor.region,
            },
            "llm": {
                "provider": self.llm.provider,
                "model": self.llm.model,
                "max_tokens": self.llm.max_tokens,
                "temperature": self.llm.temperature,
            },
            "logging": {
                "level": self.logging.level,
                "log_file": self.logging.log_file,
                "json_logs": self.logging.json_logs,
            },
        }


# Global config instance
_config: Optional[CascadeConfig] = None


def load_config(filepath: Optional[str] = None) -> CascadeConfig:
    """
    Load configuration from file or environment.

    Args:
        filepath: Optional path to JSON config file

    Returns:
        CascadeConfig instance
    """
    global _config

    if filepath:
        _config = CascadeConfig.from_file(filepath)
    else:
        default_paths = [
            "./sitecascade.json",
            "./config/sitecascade.json",
            os.path.expanduser("~/.sitecascade/config.json"),
        ]

        for path in default_paths:
            if Path(path).exists():
                logger.info(f"Loading config from: {path}")
                _config = CascadeConfig.from_file(path)
                return _config

        _config = CascadeConfig.from_env()

    logger.info(f"Configuration loaded: environment={_config.environment}")
    return _config


def get_config() -> CascadeConfig:
    """Get current configuration, loading if needed."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
