"""
Test utilities for scheduling tests.
"""
