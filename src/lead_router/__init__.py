"""
Lead Router: prospect intake and credit-aware round-robin lead routing
"""
__version__ = "1.0.0"
