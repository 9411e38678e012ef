"""
DJ room scheduler: fair, quota-aware queueing for collaborative listening rooms.
"""

__version__ = "0.1.0"
