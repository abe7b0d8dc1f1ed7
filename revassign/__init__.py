"""revassign - automatic pull request reviewer assignment service."""

__version__ = "0.1.0"
