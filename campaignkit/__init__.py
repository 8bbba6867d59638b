"""Campaignkit renders cached campaign HTML messages with resolved assets."""

__version__ = "0.1.0"
