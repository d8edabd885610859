"""Repository package — database query layer.

Contains the repository classes that handle pure database operations.
Each repository extends BaseRepository for generic CRUD and adds
domain-specific queries; services never build SQL themselves except for
small one-off lookups.
"""
