"""taskdeck: folder/tag task organiser backed by a remote collection API."""

__version__ = "0.1.0"
