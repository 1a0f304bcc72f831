"""
Doctor profiles.
"""
