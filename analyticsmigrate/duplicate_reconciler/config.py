# -*- coding: utf-8 -*-
"""
Duplicate Reconciler Service Configuration

Centralized configuration for the duplicate reconciliation SDK covering:
- Handling of events that carry no idempotency key (skip or fail)
- Group size limit above which a group always goes to manual review
- Event type names of the two-phase pre-order flow
- Idempotency key rewrite applied to the "completed" phase
- Property names inspected by the property-divergence rules
- Output chunking for cleaned exports
- Worker pool size for per-group processing
- Logging and metrics settings

All settings can be overridden via environment variables with the
``AM_DR_`` prefix (e.g. ``AM_DR_MISSING_KEY_POLICY``).

Example:
    >>> from analyticsmigrate.duplicate_reconciler.config import get_config
    >>> cfg = get_config()
    >>> print(cfg.missing_key_policy, cfg.max_group_size)

Author: AnalyticsMigrate Team
Status: Production Ready
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Environment variable prefix
# ---------------------------------------------------------------------------

_ENV_PREFIX = "AM_DR_"

#: Accepted values for ``missing_key_policy``.
MISSING_KEY_POLICIES: tuple = ("skip", "fail")


# ---------------------------------------------------------------------------
# DuplicateReconcilerConfig
# ---------------------------------------------------------------------------


@dataclass
class DuplicateReconcilerConfig:
    """Complete configuration for the duplicate reconciliation SDK.

    Attributes:
        missing_key_policy: What to do with events lacking an idempotency
            key: ``skip`` (count and report them) or ``fail`` (raise).
        max_group_size: Largest duplicate group the classifier will try
            to explain; bigger groups are classified TooMany.
        submitted_event_type: Event type of the first phase of the
            pre-order flow.
        completed_event_type: Event type of the second phase of the
            pre-order flow.
        key_rewrite_from: Substring replaced in the completed record's
            idempotency key.
        key_rewrite_to: Replacement substring.
        display_name_property: Event property holding the display name.
        category_property: Event property holding the drop category.
        unit_price_property: Event property holding the unit price.
        output_chunk_size: Records per JSONL chunk in cleaned output.
        max_workers: Thread pool size for per-group processing
            (1 = process groups inline).
        log_level: Logging level for the reconciliation service.
        enable_metrics: Whether Prometheus metrics collection is enabled.
    """

    # -- Input handling ------------------------------------------------------
    missing_key_policy: str = "skip"

    # -- Classification ------------------------------------------------------
    max_group_size: int = 2
    submitted_event_type: str = "Property Pre-Order Submitted"
    completed_event_type: str = "Property Pre-Order Completed"
    display_name_property: str = "Property"
    category_property: str = "Drop Type"
    unit_price_property: str = "Price per Share"

    # -- Resolution ----------------------------------------------------------
    key_rewrite_from: str = "Submitted"
    key_rewrite_to: str = "Completed"

    # -- Output --------------------------------------------------------------
    output_chunk_size: int = 1000

    # -- Processing ----------------------------------------------------------
    max_workers: int = 1

    # -- Logging -------------------------------------------------------------
    log_level: str = "INFO"

    # -- Metrics -------------------------------------------------------------
    enable_metrics: bool = True

    def __post_init__(self) -> None:
        if self.missing_key_policy not in MISSING_KEY_POLICIES:
            raise ValueError(
                f"missing_key_policy must be one of {MISSING_KEY_POLICIES}, "
                f"got {self.missing_key_policy!r}"
            )
        if self.max_group_size < 2:
            raise ValueError(
                f"max_group_size must be at least 2, got {self.max_group_size}"
            )
        if self.output_chunk_size < 1:
            raise ValueError(
                f"output_chunk_size must be positive, got {self.output_chunk_size}"
            )
        if self.max_workers < 1:
            raise ValueError(
                f"max_workers must be positive, got {self.max_workers}"
            )

    # ------------------------------------------------------------------
    # Factory helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> DuplicateReconcilerConfig:
        """Build a DuplicateReconcilerConfig from environment variables.

        Every field can be overridden via ``AM_DR_<FIELD_UPPER>``.
        Boolean values accept ``true/1/yes`` (case-insensitive).
        Integer values are parsed via ``int()``.

        Returns:
            Populated DuplicateReconcilerConfig instance.
        """
        prefix = _ENV_PREFIX

        def _env(name: str, default: Any = None) -> Optional[str]:
            return os.environ.get(f"{prefix}{name}", default)

        def _bool(name: str, default: bool) -> bool:
            val = _env(name)
            if val is None:
                return default
            return val.lower() in ("true", "1", "yes")

        def _int(name: str, default: int) -> int:
            val = _env(name)
            if val is None:
                return default
            try:
                return int(val)
            except ValueError:
                logger.warning(
                    "Invalid integer for %s%s=%s, using default %d",
                    prefix, name, val, default,
                )
                return default

        def _str(name: str, default: str) -> str:
            val = _env(name)
            if val is None:
                return default
            return val

        config = cls(
            # Input handling
            missing_key_policy=_str(
                "MISSING_KEY_POLICY", cls.missing_key_policy,
            ).lower(),
            # Classification
            max_group_size=_int("MAX_GROUP_SIZE", cls.max_group_size),
            submitted_event_type=_str(
                "SUBMITTED_EVENT_TYPE", cls.submitted_event_type,
            ),
            completed_event_type=_str(
                "COMPLETED_EVENT_TYPE", cls.completed_event_type,
            ),
            display_name_property=_str(
                "DISPLAY_NAME_PROPERTY", cls.display_name_property,
            ),
            category_property=_str(
                "CATEGORY_PROPERTY", cls.category_property,
            ),
            unit_price_property=_str(
                "UNIT_PRICE_PROPERTY", cls.unit_price_property,
            ),
            # Resolution
            key_rewrite_from=_str("KEY_REWRITE_FROM", cls.key_rewrite_from),
            key_rewrite_to=_str("KEY_REWRITE_TO", cls.key_rewrite_to),
            # Output
            output_chunk_size=_int(
                "OUTPUT_CHUNK_SIZE", cls.output_chunk_size,
            ),
            # Processing
            max_workers=_int("MAX_WORKERS", cls.max_workers),
            # Logging
            log_level=_str("LOG_LEVEL", cls.log_level),
            # Metrics
            enable_metrics=_bool("ENABLE_METRICS", cls.enable_metrics),
        )

        logger.info(
            "DuplicateReconcilerConfig loaded: missing_key=%s, "
            "max_group_size=%d, pre_order=[%s -> %s], "
            "key_rewrite=[%s -> %s], properties=[%s, %s, %s], "
            "chunk=%d, workers=%d, metrics=%s",
            config.missing_key_policy,
            config.max_group_size,
            config.submitted_event_type,
            config.completed_event_type,
            config.key_rewrite_from,
            config.key_rewrite_to,
            config.display_name_property,
            config.category_property,
            config.unit_price_property,
            config.output_chunk_size,
            config.max_workers,
            config.enable_metrics,
        )
        return config


# ---------------------------------------------------------------------------
# Thread-safe singleton accessor
# ---------------------------------------------------------------------------

_config_instance: Optional[DuplicateReconcilerConfig] = None
_config_lock = threading.Lock()


def get_config() -> DuplicateReconcilerConfig:
    """Return the singleton DuplicateReconcilerConfig, creating from env if needed.

    Uses double-checked locking for thread safety with minimal
    contention on the hot path.

    Returns:
        DuplicateReconcilerConfig singleton instance.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = DuplicateReconcilerConfig.from_env()
    return _config_instance


def set_config(config: DuplicateReconcilerConfig) -> None:
    """Replace the singleton DuplicateReconcilerConfig (useful for testing).

    Args:
        config: New configuration to install.
    """
    global _config_instance
    with _config_lock:
        _config_instance = config
    logger.info("DuplicateReconcilerConfig replaced programmatically")


def reset_config() -> None:
    """Reset the singleton (primarily for test teardown)."""
    global _config_instance
    with _config_lock:
        _config_instance = None


__all__ = [
    "MISSING_KEY_POLICIES",
    "DuplicateReconcilerConfig",
    "get_config",
    "set_config",
    "reset_config",
]
