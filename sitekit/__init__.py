"""Building blocks for web site build tooling: tool installation, static compression,
site file tracking, signals and path, file-system and process helpers."""

__version__ = "0.1.0"