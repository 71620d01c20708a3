"""
API version 1
"""
