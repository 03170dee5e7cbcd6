"""Configuration paths and render defaults for javaflow."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("JAVAFLOW_HOME", str(Path.home() / ".javaflow"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"
SUPPORTED_EXTENSIONS = {".java"}

# Console output services hidden from flowcharts unless configured otherwise.
DEFAULT_IGNORED_SERVICES = ("System.out", "System.err")
DEFAULT_IGNORED_VARIABLES: tuple = ()
