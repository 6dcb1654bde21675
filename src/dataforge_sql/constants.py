"""
Centralized constants for DataForge SQL.

Import from here instead of hardcoding values.
"""

# ===========================================================================
# Timeouts (seconds)
# ===========================================================================
CONNECTION_TIMEOUT_S = 5        # Driver login timeout

# ===========================================================================
# Query log
# ===========================================================================
QUERY_LOG_FILENAME = "queries.log"
QUERY_LOG_ENV = "DATAFORGE_SQL_QUERY_LOG"
THROW_ON_FAILURE_ENV = "DATAFORGE_SQL_THROW_ON_FAILURE"
BACKEND_ENV = "DATAFORGE_SQL_BACKEND"

NO_CONNECTION_ERROR = "No database connection"

# ===========================================================================
# Backends
# ===========================================================================
BACKEND_DBAPI = "dbapi"
BACKEND_SQLALCHEMY = "sqlalchemy"
DEFAULT_BACKEND = BACKEND_DBAPI

# ===========================================================================
# Table transfer - column type classification
# ===========================================================================
# Integer kinds
TRANSFER_INTEGER_TYPES = frozenset({
    "int", "integer", "tinyint", "smallint", "mediumint", "bigint",
    "int2", "int4", "int8", "year",
})
# Written as bare literals ("" becomes 0)
TRANSFER_UNQUOTED_TYPES = frozenset({
    "money", "real", "numeric", "decimal", "float", "float4", "float8",
    "double", "bit",
})
# Embedded single quotes are doubled
TRANSFER_STRING_TYPES = frozenset({
    "varchar", "nvarchar", "string", "char", "nchar", "text", "ntext",
})
# Normalized through clean_date_time()
TRANSFER_DATE_TYPES = frozenset({"datetime", "datetime2", "smalldatetime", "timestamp"})

# ===========================================================================
# Date normalization
# ===========================================================================
DEFAULT_DATETIME = (1900, 1, 1, 0, 0)

MONTH_ABBREVIATIONS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
