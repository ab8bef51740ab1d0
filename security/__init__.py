"""
security/ - Access control for bot handlers.
"""
