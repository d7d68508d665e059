"""
Database access
"""
