"""
Pytest configuration and fixtures for DataForge SQL tests.
"""
import io

import pytest

from dataforge_sql import DatabaseManager, SqlManagerSettings
from dataforge_sql.database.backends.dbapi_backend import reset_persistent_handles
from dataforge_sql.database.backends.sqlalchemy_backend import dispose_engines


@pytest.fixture
def query_log(tmp_path):
    """Existing (hence writable) query log file."""
    log_path = tmp_path / "queries.log"
    log_path.touch()
    yield log_path


@pytest.fixture
def output():
    """Stream receiving entries the query log cannot take."""
    return io.StringIO()


@pytest.fixture
def settings(query_log, output):
    """DB-API settings writing the query log to a temporary file."""
    return SqlManagerSettings(query_log=query_log, caller="pytest", output=output,
                              backend="dbapi", throw_on_failure=False)


@pytest.fixture
def db_dir(tmp_path):
    """Directory holding the SQLite database files."""
    directory = tmp_path / "databases"
    directory.mkdir()
    yield directory


@pytest.fixture(params=["dbapi", "sqlalchemy"])
def backend_name(request):
    """Run a test against both backends."""
    return request.param


@pytest.fixture
def manager(db_dir, query_log, output, backend_name):
    """Manager with one SQLite database 'main' holding a sample table and view."""
    settings = SqlManagerSettings(query_log=query_log, caller="pytest", output=output,
                                  backend=backend_name, throw_on_failure=False)
    db = DatabaseManager(str(db_dir), "sqlite", "main", "", settings=settings)
    db.query("""
        CREATE TABLE customers (
            id INTEGER PRIMARY KEY,
            name VARCHAR(40) NOT NULL,
            balance DECIMAL(10,2) DEFAULT 0,
            created DATETIME
        )
    """)
    db.query("CREATE VIEW rich_customers AS SELECT id, name FROM customers WHERE balance > 100")
    yield db
    db.close_all()


@pytest.fixture(autouse=True)
def _release_shared_handles():
    """Drop process-wide persistent handles and pooled engines between tests."""
    yield
    reset_persistent_handles()
    dispose_engines()
