"""sqltune - Retrieval-augmented rewrite suggestions for slow SQL statements."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("sqltune")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = ["__version__"]
