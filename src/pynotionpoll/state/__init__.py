"""State layer.

Holds the version-marker map observed by the previous poll and the blob
stores it is persisted in.
"""
