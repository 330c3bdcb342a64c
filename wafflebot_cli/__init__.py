"""
Wafflebot CLI - Command-line interface for the wafflebot services.

Usage:
    wafflebot-cli start
    wafflebot-cli action open_lid
    wafflebot-cli watch-ui
    wafflebot-cli recipe
"""

__version__ = "1.0.0"
