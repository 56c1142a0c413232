"""
GeoQuest backend package.
"""
