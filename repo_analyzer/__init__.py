"""GitLab commit synchronization and statistics."""

__version__ = "0.1.0"
