"""
utils/ - Shared helpers: logging, the error taxonomy and input parsing.
"""
