"""
Configuration de l'API, lue depuis l'environnement (et un fichier .env)
"""
import os
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _database_url_from_env() -> str:
    """
    Construit l'URL de la base de données.
    DATABASE_URL est prioritaire, sinon on assemble une URL PostgreSQL
    depuis les variables DB_*, sinon SQLite local.
    """
    url = os.getenv('DATABASE_URL')
    if url:
        return url

    host = os.getenv('DB_HOST')
    if not host:
        return "sqlite:///./expenses.db"

    port = os.getenv('DB_PORT', '5432')
    user = os.getenv('DB_USER', 'postgres')
    password = os.getenv('DB_PASSWORD', '')
    dbname = os.getenv('DB_NAME', 'expense_tracker')
    return f"postgresql://{user}:{password}@{host}:{port}/{dbname}"


class Settings:
    """Paramètres de l'application"""

    def __init__(
        self,
        database_url: Optional[str] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
        log_level: Optional[str] = None,
        cors_origins: Optional[List[str]] = None,
    ):
        self.database_url = database_url or _database_url_from_env()
        self.host = host or os.getenv('HOST', '0.0.0.0')
        self.port = port or int(os.getenv('PORT', '8080'))
        self.log_level = (log_level or os.getenv('LOG_LEVEL', 'INFO')).upper()
        if cors_origins is None:
            raw = os.getenv('CORS_ORIGINS', '*')
            cors_origins = [o.strip() for o in raw.split(',') if o.strip()]
        self.cors_origins = cors_origins
