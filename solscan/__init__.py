"""solscan: Solidity static analyzer built on a single-pass detector engine."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("solscan")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0-dev"

__all__ = ["__version__"]
