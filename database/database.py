from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi import Request
import logging

logger = logging.getLogger(__name__)

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite n'applique ON DELETE CASCADE qu'avec ce pragma
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str) -> Engine:
    """Crée le moteur SQLAlchemy pour l'URL donnée"""
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        # Base en mémoire: une seule connexion partagée entre les threads
        kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, **kwargs)
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine):
    """Initialise la base de données"""
    from database.models import CategoryModel, ExpenseModel, BudgetModel
    Base.metadata.create_all(bind=engine)
    logger.info(f"Schéma initialisé sur {engine.url.render_as_string(hide_password=True)}")


def get_db(request: Request):
    """Dependency pour obtenir une session de base de données"""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
