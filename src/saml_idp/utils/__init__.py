"""Utility module.

This module provides shared helpers and the exception hierarchy.
"""
