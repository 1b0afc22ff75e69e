"""
httpweave test suite
"""

# Read version from package metadata (single source of truth: pyproject.toml)
from importlib.metadata import version as _get_version

__version__ = _get_version("httpweave")
