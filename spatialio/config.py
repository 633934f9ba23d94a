# -*- coding: utf-8 -*-
"""Configuration for spatialio: network timeouts, download chunking, raster and figure defaults.

Nothing here is persisted implicitly. A Config is created by the caller (or loaded from a YAML
or JSON file they point at) and passed to the functions that need it.
"""

import json
import tempfile
from dataclasses import asdict, dataclass, field
from pathlib import Path

import yaml

DATATYPE_NAMES = ("LOG1S", "INT1S", "INT1U", "INT2S", "INT2U", "INT4S", "INT4U", "FLT4S", "FLT8S")


@dataclass
class Config:
    """Configuration for reading, fetching and rendering.

    Attributes:
        timeout: Seconds to wait for a remote service before giving up.
        chunk_size: Bytes per chunk when streaming a response body to disk.
        temp_dir: Directory for scoped temporary files; None uses the system default.
        user_agent: User-Agent header sent with every HTTP request.
        default_raster_datatype: Storage type used by write_raster when none is given.
        figure_width: Width of rendered figures in inches.
        figure_height: Height of rendered figures in inches.
        default_dpi: Resolution of saved figures (dots per inch).
    """

    timeout: float = 60.0
    chunk_size: int = 8192
    temp_dir: Path = None
    user_agent: str = "spatialio/0.1.0"
    # widest single-precision type; safe but large, narrower types are usually enough
    default_raster_datatype: str = "FLT4S"
    figure_width: float = 12.0
    figure_height: float = 10.0
    default_dpi: int = 150
    extra_headers: dict = field(default_factory=dict)

    def __post_init__(self):
        """Convert string paths to Path objects if necessary."""
        if isinstance(self.temp_dir, str):
            self.temp_dir = Path(self.temp_dir)

    @property
    def figsize(self):
        return (self.figure_width, self.figure_height)

    @property
    def temp_root(self):
        """Directory temporary downloads are created in."""
        return str(self.temp_dir) if self.temp_dir is not None else tempfile.gettempdir()

    @classmethod
    def load_from_file(cls, path):
        """Load configuration from a YAML or JSON file.

        Args:
            path: Path to configuration file (.yaml, .yml, or .json).

        Returns:
            Config instance with loaded settings.

        Raises:
            ValueError: If file format is not supported.
            FileNotFoundError: If file does not exist.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            if path.suffix in [".yaml", ".yml"]:
                data = yaml.safe_load(f) or {}
            elif path.suffix == ".json":
                data = json.load(f)
            else:
                raise ValueError(f"Unsupported file format: {path.suffix}. Use .yaml, .yml, or .json")

        config = cls(**data)
        config.validate()
        return config

    def save_to_file(self, path):
        """Save configuration to a YAML or JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = asdict(self)
        data["temp_dir"] = str(data["temp_dir"]) if data["temp_dir"] is not None else None

        with open(path, "w") as f:
            if path.suffix in [".yaml", ".yml"]:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False)
            elif path.suffix == ".json":
                json.dump(data, f, indent=2)
            else:
                raise ValueError(f"Unsupported file format: {path.suffix}. Use .yaml, .yml, or .json")

    def validate(self):
        """Validate configuration parameters.

        Returns:
            True if configuration is valid.

        Raises:
            ValueError: If any configuration parameter is invalid.
        """
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

        if not isinstance(self.chunk_size, int) or self.chunk_size <= 0:
            raise ValueError("chunk_size must be a positive integer")

        if str(self.default_raster_datatype).upper() not in DATATYPE_NAMES:
            raise ValueError(f"default_raster_datatype must be one of: {', '.join(DATATYPE_NAMES)}")

        if self.figure_width <= 0 or self.figure_height <= 0:
            raise ValueError("Figure dimensions must be positive")

        if self.default_dpi <= 0:
            raise ValueError("default_dpi must be positive")

        if not isinstance(self.extra_headers, dict):
            raise ValueError("extra_headers must be a mapping")

        return True


def get_default_config():
    """Get a Config instance with default settings."""
    return Config()
