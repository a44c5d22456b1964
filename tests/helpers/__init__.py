"""
Test helper utilities for presswatch testing.

This module provides reusable utilities for:
- Building wide and long CSV exports
- Creating cycle records and realtime samples directly
"""
