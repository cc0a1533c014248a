"""
Core infrastructure: configuration, database access, logging and exceptions.
"""
