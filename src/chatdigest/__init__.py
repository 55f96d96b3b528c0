"""chatdigest: hierarchical summaries of group-chat logs."""

__version__ = "0.1.0"
