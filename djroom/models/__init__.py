"""
Database models for the DJ room scheduler
"""

from .models import *
