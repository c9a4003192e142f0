"""codeprose: semantic search over the comments and prose of a code repository."""

__version__ = "0.1.0"
