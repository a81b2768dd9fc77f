"""
                Restaurant Menu Store

Menu management core for a restaurant: branches, categories and dishes
kept in memory and synchronized optimistically with a JSON REST store.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
