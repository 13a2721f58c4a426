"""qtimeit Configuration.

Public APIs for configuring qtimeit:
- TimeitConfig - Immutable settings for calibration, timing and benchmarking
- configure() - Set process-wide configuration
- get_config() - Get current configuration
- load_config() - Load configuration from a YAML file
"""
from __future__ import annotations

import math
import os
import threading
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Callable, ClassVar, Optional, Union

import yaml

from qtimeit.exceptions import ConfigError


def _parse_bool(value: str) -> bool:
    return value.strip().lower() not in ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class TimeitConfig:
    """Configuration for calibration, timing and benchmarking.

    Attributes:
        bench_budget: Wall-clock seconds spent on each benchmarked candidate.
        bench_run_fraction: Share of the budget one timed run should take.
        min_trial_duration: Shortest trial run the loop-count calibrator
            extrapolates from, in seconds.
        async_depth_limit: Chained-callback iterations between yields to
            the scheduler.
        calibration_rounds: Rounds of loop overhead estimation.
        calibration_loops: No-op calls per synchronous calibration round.
        calibration_loops_cb: No-op calls per callback calibration round.
        warmup_loops: No-op calls discarded before calibrating.
        timer_reads: Clock reads averaged for the timer overhead.
        verbose: Whether runs without an explicit label print a report.
        sync_cuda: Whether clock reads synchronize CUDA first.

    Example:
        config = TimeitConfig(bench_budget=1.0, verbose=False)
    """

    ENV_PREFIX: ClassVar[str] = "QTIMEIT_"

    bench_budget: float = 4.0
    bench_run_fraction: float = 0.1
    min_trial_duration: float = 0.02
    async_depth_limit: int = 100
    calibration_rounds: int = 3
    calibration_loops: int = 500_000
    calibration_loops_cb: int = 100_000
    warmup_loops: int = 100_000
    timer_reads: int = 5000
    verbose: bool = True
    sync_cuda: bool = False

    def __post_init__(self) -> None:
        """Validate configuration values."""
        for key in ("bench_budget", "min_trial_duration"):
            value = getattr(self, key)
            if not math.isfinite(value) or value <= 0:
                raise ConfigError(
                    f"{key} must be a positive number",
                    config_key=key,
                    expected="> 0",
                    got=value,
                )
        if not 0 < self.bench_run_fraction <= 1:
            raise ConfigError(
                "bench_run_fraction must be in (0, 1]",
                config_key="bench_run_fraction",
                expected="0 < x <= 1",
                got=self.bench_run_fraction,
            )
        for key in (
            "async_depth_limit",
            "calibration_rounds",
            "calibration_loops",
            "calibration_loops_cb",
            "timer_reads",
        ):
            if getattr(self, key) <= 0:
                raise ConfigError(
                    f"{key} must be positive",
                    config_key=key,
                    expected="> 0",
                    got=getattr(self, key),
                )
        if self.warmup_loops < 0:
            raise ConfigError(
                "warmup_loops must not be negative",
                config_key="warmup_loops",
                expected=">= 0",
                got=self.warmup_loops,
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimeitConfig":
        """Create config from a mapping, ignoring None values.

        Args:
            data: Field name to value mapping.

        Returns:
            TimeitConfig instance.

        Raises:
            ConfigError: On unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(
                f"Unknown configuration keys: {unknown}",
                expected=sorted(known),
                got=unknown,
            )
        return cls(**{k: v for k, v in data.items() if v is not None})

    @classmethod
    def from_env(cls, base: Optional["TimeitConfig"] = None) -> "TimeitConfig":
        """Create config from environment variables.

        Environment variables:
            QTIMEIT_BENCH_BUDGET: Seconds per benchmarked candidate
            QTIMEIT_BENCH_RUN_FRACTION: Share of the budget per timed run
            QTIMEIT_MIN_TRIAL: Minimum trial duration in seconds
            QTIMEIT_ASYNC_DEPTH_LIMIT: Callback iterations between yields
            QTIMEIT_CALIBRATION_ROUNDS: Loop overhead estimation rounds
            QTIMEIT_CALIBRATION_LOOPS: No-op calls per sync round
            QTIMEIT_CALIBRATION_LOOPS_CB: No-op calls per callback round
            QTIMEIT_WARMUP_LOOPS: No-op calls discarded before calibrating
            QTIMEIT_TIMER_READS: Clock reads for the timer overhead
            QTIMEIT_VERBOSE: "0" or "false" to silence unlabeled runs
            QTIMEIT_SYNC_CUDA: "1" or "true" to synchronize CUDA on reads

        Args:
            base: Config providing values for unset variables.

        Returns:
            TimeitConfig with values from environment.

        Raises:
            ConfigError: If a variable does not parse.
        """
        base = base or cls()
        env_names: dict[str, tuple[str, Callable[[str], Any]]] = {
            "BENCH_BUDGET": ("bench_budget", float),
            "BENCH_RUN_FRACTION": ("bench_run_fraction", float),
            "MIN_TRIAL": ("min_trial_duration", float),
            "ASYNC_DEPTH_LIMIT": ("async_depth_limit", int),
            "CALIBRATION_ROUNDS": ("calibration_rounds", int),
            "CALIBRATION_LOOPS": ("calibration_loops", int),
            "CALIBRATION_LOOPS_CB": ("calibration_loops_cb", int),
            "WARMUP_LOOPS": ("warmup_loops", int),
            "TIMER_READS": ("timer_reads", int),
            "VERBOSE": ("verbose", _parse_bool),
            "SYNC_CUDA": ("sync_cuda", _parse_bool),
        }
        overrides: dict[str, Any] = {}
        for suffix, (key, parse) in env_names.items():
            raw = os.environ.get(cls.ENV_PREFIX + suffix)
            if raw is None:
                continue
            try:
                overrides[key] = parse(raw)
            except ValueError:
                raise ConfigError(
                    f"Invalid value for {cls.ENV_PREFIX + suffix}: {raw!r}",
                    config_key=key,
                    got=raw,
                ) from None
        return replace(base, **overrides)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "TimeitConfig":
        """Load configuration from a YAML file.

        YAML format::

            bench_budget: 2.0
            min_trial_duration: 0.05
            verbose: false

        Args:
            path: Path to YAML configuration file.

        Returns:
            TimeitConfig instance.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ConfigError: If config file is invalid.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f)

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"Invalid config file format: {path}")
        return cls.from_dict(data)


# Module-level process state
_config: Optional[TimeitConfig] = None
_listeners: list[Callable[[], None]] = []
_state_lock = threading.Lock()


def get_config() -> TimeitConfig:
    """Get current process-wide configuration.

    Defaults come from the environment on first access.

    Returns:
        Current configuration (immutable).
    """
    global _config
    if _config is None:
        with _state_lock:
            if _config is None:
                _config = TimeitConfig.from_env()
    return _config


def configure(reset: bool = False, **overrides: Any) -> TimeitConfig:
    """Configure qtimeit process-wide settings.

    Settings persist for the lifetime of the process unless reset. The
    default engine is rebuilt on next use so the settings take effect.

    Args:
        reset: If True, start from environment defaults first.
        **overrides: TimeitConfig fields to change. None values are ignored.

    Returns:
        The new configuration.

    Raises:
        ConfigError: On unknown keys or invalid values.

    Example:
        >>> import qtimeit
        >>> qtimeit.configure(bench_budget=1.0, verbose=False)
        >>> qtimeit.configure(reset=True)
    """
    global _config
    base = TimeitConfig.from_env() if reset else get_config()
    merged = {f.name: getattr(base, f.name) for f in fields(TimeitConfig)}
    updates = {k: v for k, v in overrides.items() if v is not None}
    unknown = sorted(set(updates) - set(merged))
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {unknown}", got=unknown)
    merged.update(updates)
    new_config = TimeitConfig(**merged)
    with _state_lock:
        _config = new_config
        listeners = list(_listeners)
    for listener in listeners:
        listener()
    return new_config


def load_config(path: Union[str, Path]) -> TimeitConfig:
    """Load configuration from a YAML file and make it process-wide.

    Args:
        path: Path to YAML configuration file.

    Returns:
        The loaded configuration.
    """
    loaded = TimeitConfig.from_yaml(path)
    return configure(**{f.name: getattr(loaded, f.name) for f in fields(TimeitConfig)})


def on_configure(listener: Callable[[], None]) -> None:
    """Register a callback run after every configure()."""
    with _state_lock:
        _listeners.append(listener)
