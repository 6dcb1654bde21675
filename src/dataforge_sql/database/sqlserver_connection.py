"""
SQL Server Connection - pyodbc, or pytds when no ODBC driver is installed.

Connection targets are described once as a parameter dict; pyodbc receives it
rendered as an ODBC connection string, pytds receives it as keyword
arguments. Both are driven with ``?`` placeholders.
"""

from typing import Any, Dict, Optional

from .placeholders import translate_placeholders

import logging
logger = logging.getLogger(__name__)

DEFAULT_PORT = 1433
FALLBACK_ODBC_DRIVER = "ODBC Driver 17 for SQL Server"

# (driver module, ODBC driver name), resolved on first use
_detected: Optional[tuple] = None


def _detect() -> tuple:
    try:
        import pyodbc
        drivers = sorted(d for d in pyodbc.drivers() if "SQL Server" in d)
        if drivers:
            # "ODBC Driver 18 ..." sorts after "ODBC Driver 17 ..."
            return "pyodbc", drivers[-1]
        logger.info("pyodbc installed without a SQL Server ODBC driver")
    except ImportError:
        logger.info("pyodbc not installed")

    try:
        import pytds  # noqa: F401
        return "pytds", None
    except ImportError:
        logger.warning("No SQL Server driver: install pyodbc with an ODBC driver, or python-tds")
    return "", None


def get_backend() -> str:
    """``"pyodbc"``, ``"pytds"`` or ``""`` when neither can be used."""
    global _detected
    if _detected is None:
        _detected = _detect()
        logger.debug(f"SQL Server driver: {_detected[0] or 'none'}")
    return _detected[0]


def get_odbc_driver() -> str:
    get_backend()
    return _detected[1] or FALLBACK_ODBC_DRIVER


# ==================== Connection targets ====================

def connection_params(host: str, database: Optional[str], user: str,
                      password: str = "") -> Dict[str, Any]:
    """
    Describe a SQL Server target.

    ``host`` may name an instance (``host\\SQLEXPRESS``) or a port
    (``host:1444`` / ``host,1444``). Without a user, integrated Windows
    authentication is requested.
    """
    server = host or "localhost"
    port = None
    for separator in (",", ":"):
        if separator in server:
            name, _, raw_port = server.rpartition(separator)
            if raw_port.strip().isdigit():
                server, port = name, int(raw_port)
            break

    instance = None
    if "\\" in server:
        server, instance = server.split("\\", 1)

    return {
        "server": server,
        "port": port,
        "instance": instance,
        "database": database or None,
        "user": user or None,
        "password": password if user else None,
    }


def _odbc_value(value: str) -> str:
    return "{" + value.replace("}", "}}") + "}" if ";" in value or "}" in value else value


def build_connection_string(host: str, database: Optional[str], user: str,
                            password: str = "", driver: Optional[str] = None) -> str:
    """ODBC connection string for pyodbc and SQLAlchemy's ``odbc_connect``."""
    params = connection_params(host, database, user, password)
    server = params["server"]
    if params["instance"]:
        server += "\\" + params["instance"]
    if params["port"]:
        server += f",{params['port']}"

    parts = [f"Driver={{{driver or get_odbc_driver()}}}", f"Server={server}"]
    if params["database"]:
        parts.append(f"Database={params['database']}")
    if params["user"]:
        parts.append(f"UID={params['user']}")
        parts.append(f"PWD={_odbc_value(params['password'])}")
    else:
        parts.append("Trusted_Connection=yes")
    parts.append("TrustServerCertificate=yes")
    return ";".join(parts) + ";"


# ==================== pytds adapters ====================

class PytdsCursorWrapper:
    """pytds cursor accepting ``?`` placeholders; everything else is delegated."""

    def __init__(self, cursor):
        self._cursor = cursor

    def __getattr__(self, name):
        return getattr(self._cursor, name)

    @property
    def lastrowid(self):
        return getattr(self._cursor, "lastrowid", None)

    def execute(self, sql: str, params=None):
        if params is None:
            return self._cursor.execute(sql)
        if not isinstance(params, (list, tuple)):
            params = (params,)
        return self._cursor.execute(translate_placeholders(sql, "format"), tuple(params))


class PytdsConnectionWrapper:
    """pytds connection exposing the pyodbc surface the backend relies on."""

    def __init__(self, conn):
        self._conn = conn

    def __getattr__(self, name):
        return getattr(self._conn, name)

    @property
    def autocommit(self) -> bool:
        return self._conn.autocommit

    @autocommit.setter
    def autocommit(self, value: bool):
        self._conn.autocommit = value

    def cursor(self):
        return PytdsCursorWrapper(self._conn.cursor())


def _connect_via_pytds(params: Dict[str, Any], timeout: int, autocommit: bool) -> PytdsConnectionWrapper:
    import pytds

    kwargs: Dict[str, Any] = {
        "server": params["server"],
        "port": params["port"] or DEFAULT_PORT,
        "login_timeout": timeout,
        "autocommit": autocommit,
    }
    for key in ("database", "instance"):
        if params[key]:
            kwargs[key] = params[key]

    if params["user"]:
        kwargs["user"] = params["user"]
        kwargs["password"] = params["password"]
    else:
        from pytds.login import SspiAuth
        kwargs["auth"] = SspiAuth()

    return PytdsConnectionWrapper(pytds.connect(**kwargs))


def connect_sqlserver(host: str, database: Optional[str], user: str, password: str = "",
                      timeout: int = 5, autocommit: bool = True):
    """
    Open a SQL Server connection with the best available driver.

    Returns:
        pyodbc.Connection or PytdsConnectionWrapper

    Raises:
        RuntimeError: No SQL Server driver is installed
    """
    backend = get_backend()
    if backend == "pyodbc":
        import pyodbc
        conn_str = build_connection_string(host, database, user, password)
        return pyodbc.connect(conn_str, timeout=timeout, autocommit=autocommit)
    if backend == "pytds":
        return _connect_via_pytds(connection_params(host, database, user, password),
                                  timeout, autocommit)
    raise RuntimeError("No SQL Server driver available: install pyodbc with an ODBC driver, "
                       "or python-tds")
