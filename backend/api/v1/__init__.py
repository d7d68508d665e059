"""
API v1 Package
"""
