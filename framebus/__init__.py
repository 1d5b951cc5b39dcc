"""framebus - namespaced pub/sub between isolated browsing contexts."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("framebus")
except PackageNotFoundError:
    __version__ = "0.1.0"

__brand__ = "framebus"
