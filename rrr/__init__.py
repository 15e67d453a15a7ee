"""Personal feed reader: remote RSS/Atom feeds plus locally written Atom files."""

__version__ = "0.1.0"
