"""
Smart search services
"""
