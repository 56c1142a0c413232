"""
API data models
"""
