"""
Portfolio API Backend

A FastAPI backend for a personal portfolio site.
Provides projects, contact messages, authentication, and a blog synced from Medium.
"""

__version__ = "1.0.0"
