"""
Data access layer
"""
