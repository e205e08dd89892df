"""Vessel backend: terminal sessions, split-pane layout and the bridge server."""
