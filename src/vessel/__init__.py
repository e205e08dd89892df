"""Vessel - terminal multiplexer with split-pane workspaces"""

__version__ = "0.1.0"
