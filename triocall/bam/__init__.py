"""Functionality for reference and aligned read files.
"""
