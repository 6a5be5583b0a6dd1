"""Storyreel: workflow job manager for the novel-to-video pipeline."""

__version__ = "0.1.0"
