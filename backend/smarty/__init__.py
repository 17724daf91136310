"""
Smarty: note-taking backend and client synchronization layer.
"""

__version__ = "1.0.0"
