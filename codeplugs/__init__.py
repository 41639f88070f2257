"""Radio codeplug manager.

Keeps channels, talkgroups, zones, scan lists and roaming sets in one
SQLite store and converts them to and from vendor CSV dialects.
"""

__version__ = "0.1.0"
