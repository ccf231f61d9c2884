"""devhelpers — convenience commands around git and pip."""

__version__ = "0.1.0"
