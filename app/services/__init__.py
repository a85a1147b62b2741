"""
app/services package marker.
"""
