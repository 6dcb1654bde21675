"""
Utilities - SQL text helpers, query log and datetime cleanup.
"""
