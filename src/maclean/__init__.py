"""maclean - interactive developer workstation cleanup."""

__version__ = "1.2.0"
