"""groupavail: common availability across a roster, with a merging TTL cache."""

from groupavail.version import __version__

__all__ = ["__version__"]
