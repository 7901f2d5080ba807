from tests.shared.fixtures.database import (  # noqa: F401
    async_database_url,
    async_engine,
    db_session,
    db_session_maker,
    postgres_container,
)
