"""Local editing and synchronization for Oddmuse wikis."""

__version__ = "0.3.0"
