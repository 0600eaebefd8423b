#!/usr/bin/env python3
"""
EventDesk admin backend.
"""

__version__ = "0.3.0"
