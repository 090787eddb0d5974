"""Turn a code repository into a single text file."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("repo2file")
except PackageNotFoundError:
    __version__ = "0.0.0"
