from pathlib import Path
from typing import Optional

from cyclopts import App
from loguru import logger

from enrichnet.config import write_initial_configuration

app = App()


@app.default()
def write_config(path: Optional[Path] = None):
    """
    Write a configuration file with default values.

    Args:
        path: Target file. Defaults to the platform location:
            - Windows: %APPDATA%/enrichnet/config.toml
            - macOS/Linux: ~/.config/enrichnet/config.toml
    """
    try:
        write_initial_configuration(path)
    except Exception as e:
        logger.error(f"Failed to create configuration file: {e}")
        raise


def main():
    app()


if __name__ == '__main__':
    main()
