"""
Fund Launch Tracker.

Task dependency graph and unlock-state engine behind the fund launch
skill tree.
"""

__version__ = "0.1.0"
