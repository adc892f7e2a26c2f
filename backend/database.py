import logging
from threading import Lock

from fastapi import Request
from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from backend.core import config


logger = logging.getLogger(__name__)

Base = declarative_base()

_schema_lock = Lock()


def build_engine(database_url: str | None = None) -> Engine:
    """Create the pooled engine every request session is drawn from.

    SQLite is only used for local development and tests: it gets
    ``check_same_thread`` disabled, foreign keys switched on, and a single
    shared connection when the database lives in memory. PostgreSQL gets the
    configured pool limits and a per-connection statement timeout.
    """
    url = database_url or config.DATABASE_URL

    if url.startswith('sqlite'):
        engine_kwargs = {'connect_args': {'check_same_thread': False}}
        if ':memory:' in url or url.rstrip('/') == 'sqlite:':
            engine_kwargs['poolclass'] = StaticPool
        engine = create_engine(url, echo=config.DB_ECHO, **engine_kwargs)

        @event.listens_for(engine, 'connect')
        def enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute('PRAGMA foreign_keys=ON')
            cursor.close()

        return engine

    return create_engine(
        url,
        echo=config.DB_ECHO,
        pool_pre_ping=True,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=config.DB_MAX_OVERFLOW,
        pool_timeout=config.DB_POOL_TIMEOUT,
        pool_recycle=config.DB_POOL_RECYCLE,
        connect_args={'options': f'-c statement_timeout={config.DB_STATEMENT_TIMEOUT_MS}'},
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )


def get_db(request: Request):
    session_factory = request.app.state.session_factory
    db: Session = session_factory()
    try:
        yield db
    finally:
        db.close()


def ensure_counselor_schema(engine: Engine) -> None:
    with _schema_lock:
        inspector = inspect(engine)

        if 'counselors' not in inspector.get_table_names():
            return

        json_type = 'JSONB' if engine.dialect.name == 'postgresql' else 'JSON'
        existing_columns = {column['name'] for column in inspector.get_columns('counselors')}
        migration_steps = [
            ('availability', f"ALTER TABLE counselors ADD COLUMN availability {json_type} DEFAULT '{{}}'"),
            ('specialization', 'ALTER TABLE counselors ADD COLUMN specialization VARCHAR(255)'),
            ('location', 'ALTER TABLE counselors ADD COLUMN location VARCHAR(255)'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    logger.info('Adding missing column counselors.%s', column_name)
                    connection.execute(text(statement))


def ensure_appointment_schema(engine: Engine) -> None:
    with _schema_lock:
        inspector = inspect(engine)
        table_names = set(inspector.get_table_names())

        if 'appointments' not in table_names:
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('description', 'ALTER TABLE appointments ADD COLUMN description TEXT'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    logger.info('Adding missing column appointments.%s', column_name)
                    connection.execute(text(statement))
            connection.execute(
                text(
                    'CREATE INDEX IF NOT EXISTS idx_appointments_counselor_time '
                    'ON appointments(counselor_id, appointment_time)'
                )
            )
            connection.execute(
                text(
                    'CREATE INDEX IF NOT EXISTS idx_appointments_student_time '
                    'ON appointments(student_id, appointment_time)'
                )
            )
            if 'thought_diaries' in table_names:
                connection.execute(
                    text(
                        'CREATE INDEX IF NOT EXISTS idx_thought_diaries_student_date '
                        'ON thought_diaries(student_id, entry_date)'
                    )
                )


def initialize_database(engine: Engine) -> None:
    """Create every mapped table, then patch up tables created by older releases."""
    Base.metadata.create_all(bind=engine)
    ensure_counselor_schema(engine)
    ensure_appointment_schema(engine)
    logger.info('Database initialization complete.')
