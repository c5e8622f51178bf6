import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

import tomli
import tomli_w
from loguru import logger


@dataclass
class AnalysisConfig:
    # gene-set filter and GSEA
    min_set_size: int = 15
    max_set_size: int = 500
    permutation_num: int = 1000
    pvalue_cutoff: float = 0.05
    seed: int = 42
    threads: int = 1
    name_delimiter: str = "%"
    # enrichment map
    similarity_metric: str = "jaccard"
    similarity_cutoff: float = 0.2
    # partial-correlation network
    lfdr_cutoff: float = 0.2
    max_edges: int = 100
    cv_folds: int = 10

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisConfig":
        """
        Initialize AnalysisConfig from dict. Missing keys keep their defaults.
        """
        known = {f.name for f in fields(cls)}
        unknown = [key for key in data if key not in known]
        if unknown:
            raise ValueError(
                f"Configuration contains unknown keys: {', '.join(unknown)}"
            )
        return cls(**data)

    @classmethod
    def read_toml(cls, path: Path) -> "AnalysisConfig":
        """
        Read TOML from `path`, validate the keys, and return an AnalysisConfig instance.
        """
        with open(path, 'rb') as f:
            data = tomli.load(f)
        return cls.from_dict(data)

    def write_toml(self, path: Path) -> None:
        """
        Write the current configuration to TOML at `path`.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'wb') as f:
            tomli_w.dump(asdict(self), f)


def get_config_path() -> Path:
    """
    Determine the platform-specific config.toml path for enrichnet.
    """
    if os.name == 'nt':  # Windows
        config_dir = Path(os.environ.get('APPDATA', '')) / 'enrichnet'
    else:
        config_dir = Path.home() / '.config' / 'enrichnet'
    return config_dir / 'config.toml'


def load_configuration(path: Optional[Path] = None) -> AnalysisConfig:
    """
    Read the configuration from `path`, else from the platform config file
    when it exists, else return the defaults.

    The platform configuration file is located in:
    - Windows: %APPDATA%/enrichnet/config.toml
    - macOS/Linux: ~/.config/enrichnet/config.toml
    """
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found at {path}")
        logger.info(f"Reading configuration from {path}")
        return AnalysisConfig.read_toml(path)

    default_path = get_config_path()
    if default_path.exists():
        logger.info(f"Reading configuration from {default_path}")
        return AnalysisConfig.read_toml(default_path)

    logger.info("No configuration file found, using defaults")
    return AnalysisConfig()


def write_initial_configuration(path: Optional[Path] = None) -> Path:
    """
    Write a configuration file with the default settings to `path`
    (the platform config file when None).
    """
    config_path = Path(path) if path is not None else get_config_path()
    AnalysisConfig().write_toml(config_path)
    logger.info(f"Created initial configuration file at {config_path}")
    return config_path
