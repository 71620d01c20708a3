"""
Business logic: routing, credit, agent lifecycle and notifications
"""
