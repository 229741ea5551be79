"""
bootstrap/ - Bootstrap Layer

Configuration loading, logging setup and entry points.
"""

from .config import (
    CascadeConfig,
    RiskConfig,
    SequencingConfig,
    AdvisorConfig,
    LLMConfig,
    LoggingConfig,
    load_config,
    get_config,
)

from .entrypoints import (
    cli_main,
    api_main,
    setup_logging,
)


__all__ = [
    # Config
    "CascadeConfig",
    "RiskConfig",
    "SequencingConfig",
    "AdvisorConfig",
    "LLMConfig",
    "LoggingConfig",
    "load_config",
    "get_config",
    # Entry Points
    "cli_main",
    "api_main",
    "setup_logging",
]
