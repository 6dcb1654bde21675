"""
Database layer - dialects, driver backends, registry, results and schema models.
"""
