"""
Configuration for sparse vectors and numeric kernels.

Holds the growth policy of SparseVector and the tolerance window shared by
log_add and the bucketed exponential table. Values come from defaults, a
YAML file, or WEIGHTVEC_* environment variables.
"""

import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml


DEFAULT_CONFIG_FILENAME = ".weightvec.yml"


@dataclass
class VectorConfig:
    """
    Process-wide defaults for vectors and kernels.

    Explicit constructor or call arguments always win over these values.
    """

    # Multiplicative capacity growth; shrink happens below capacity / growth_rate**2
    growth_rate: float = 1.5

    # Capacity of a freshly created or cleared SparseVector
    initial_capacity: int = 4

    # Width of the log_add window; also the span of the exp lookup table
    log_tolerance: float = 30.0

    # Resolution of the exp lookup table
    exp_bins: int = 100000

    # Level used by the CLI when it configures logging
    log_level: str = "WARNING"

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.growth_rate < 1.5:
            raise ValueError(f"growth_rate must be >= 1.5, got {self.growth_rate}")

        if self.initial_capacity < 1:
            raise ValueError(f"initial_capacity must be >= 1, got {self.initial_capacity}")

        if self.log_tolerance <= 0:
            raise ValueError(f"log_tolerance must be positive, got {self.log_tolerance}")

        if self.exp_bins < 1:
            raise ValueError(f"exp_bins must be >= 1, got {self.exp_bins}")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"log_level is not a logging level: {self.log_level}")

    def to_dict(self) -> Dict[str, Union[float, int, str]]:
        """Convert to dictionary representation."""
        return {
            "growth_rate": self.growth_rate,
            "initial_capacity": self.initial_capacity,
            "log_tolerance": self.log_tolerance,
            "exp_bins": self.exp_bins,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "VectorConfig":
        """Create from dictionary representation."""
        return cls(
            growth_rate=float(data.get("growth_rate", 1.5)),
            initial_capacity=int(data.get("initial_capacity", 4)),
            log_tolerance=float(data.get("log_tolerance", 30.0)),
            exp_bins=int(data.get("exp_bins", 100000)),
            log_level=str(data.get("log_level", "WARNING")),
        )

    def save_to_file(self, file_path: Union[str, Path]) -> None:
        """Save configuration to YAML file."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    @classmethod
    def load_from_file(cls, file_path: Union[str, Path]) -> "VectorConfig":
        """Load configuration from YAML file."""
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(file_path, "r") as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        current_dir_config = Path(DEFAULT_CONFIG_FILENAME)
        if current_dir_config.exists():
            return current_dir_config

        return Path.home() / DEFAULT_CONFIG_FILENAME

    @classmethod
    def load_or_default(
        cls, config_path: Optional[Union[str, Path]] = None
    ) -> "VectorConfig":
        """
        Load configuration from file or return default if not found.

        Args:
            config_path: Optional path to configuration file

        Returns:
            VectorConfig instance
        """
        if config_path:
            config_path = Path(config_path)
            if config_path.exists():
                return cls.load_from_file(config_path)
        else:
            default_path = cls.get_default_config_path()
            if default_path.exists():
                return cls.load_from_file(default_path)

        return cls()


class ConfigManager:
    """
    Loads configuration from file and environment.

    WEIGHTVEC_CONFIG points at a YAML file; individual WEIGHTVEC_* variables
    override single fields on top of whatever was loaded.
    """

    ENV_MAPPINGS = {
        "WEIGHTVEC_GROWTH_RATE": ("growth_rate", float),
        "WEIGHTVEC_INITIAL_CAPACITY": ("initial_capacity", int),
        "WEIGHTVEC_LOG_TOLERANCE": ("log_tolerance", float),
        "WEIGHTVEC_EXP_BINS": ("exp_bins", int),
        "WEIGHTVEC_LOG_LEVEL": ("log_level", str),
    }

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[VectorConfig] = None

    @property
    def config(self) -> VectorConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def load_config(self) -> VectorConfig:
        """Load configuration from file, then apply environment overrides."""
        env_config_path = os.getenv("WEIGHTVEC_CONFIG")
        if env_config_path and Path(env_config_path).exists():
            config = VectorConfig.load_from_file(env_config_path)
        elif self.config_path and self.config_path.exists():
            config = VectorConfig.load_from_file(self.config_path)
        else:
            config = VectorConfig.load_or_default()

        return self.apply_environment_overrides(config)

    def save_config(
        self, config: VectorConfig, path: Optional[Union[str, Path]] = None
    ) -> None:
        """Save configuration to file."""
        save_path = (
            Path(path)
            if path
            else (self.config_path or VectorConfig.get_default_config_path())
        )
        config.save_to_file(save_path)
        self._config = config

    def get_environment_overrides(self) -> Dict[str, Union[float, int, str]]:
        """Get configuration overrides from environment variables."""
        overrides = {}

        for env_var, (config_key, config_type) in self.ENV_MAPPINGS.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                try:
                    overrides[config_key] = config_type(env_value)
                except ValueError as e:
                    raise ValueError(
                        f"Invalid environment variable {env_var}={env_value}: {e}"
                    )

        return overrides

    def apply_environment_overrides(self, config: VectorConfig) -> VectorConfig:
        """Apply environment variable overrides to configuration."""
        overrides = self.get_environment_overrides()

        if not overrides:
            return config

        config_dict = config.to_dict()
        config_dict.update(overrides)
        return VectorConfig.from_dict(config_dict)

    def validate_config(self, config: VectorConfig) -> List[str]:
        """Validate configuration and return list of issues."""
        issues = []

        try:
            config.__post_init__()
        except ValueError as e:
            issues.append(str(e))

        if config.exp_bins < 1000:
            issues.append("Warning: exp_bins below 1000 makes log_add noticeably inaccurate")

        if config.growth_rate > 4.0:
            issues.append("Warning: growth_rate above 4.0 wastes memory on large vectors")

        return issues


_config_lock = threading.Lock()
_global_config: Optional[VectorConfig] = None


def get_config() -> VectorConfig:
    """Return the process defaults, loading them on first use."""
    global _global_config
    config = _global_config
    if config is None:
        with _config_lock:
            if _global_config is None:
                _global_config = ConfigManager().config
            config = _global_config
    return config


def set_config(config: VectorConfig) -> None:
    """Replace the process defaults."""
    global _global_config
    with _config_lock:
        _global_config = config


def reset_config() -> None:
    """Forget the process defaults so the next get_config() reloads them."""
    global _global_config
    with _config_lock:
        _global_config = None
