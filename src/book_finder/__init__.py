"""Book discovery with a personal reading agenda and discussion rooms."""

__version__ = "0.1.0"
