"""
kbcli-builder - build kbcli commands from cascading, always-valid menus
"""

__version__ = "0.1.0"
