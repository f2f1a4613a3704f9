
import logging

import psycopg2
from psycopg2.extensions import ISOLATION_LEVEL_AUTOCOMMIT
from psycopg2 import sql
from sqlalchemy.engine import make_url

from cineseat.core.config import settings

logger = logging.getLogger(__name__)

def create_database():
    """Create the target PostgreSQL database if it doesn't exist."""
    url = make_url(settings.DATABASE_URL)
    if not url.drivername.startswith("postgresql"):
        logger.info("Skipping database creation for %s backend.", url.drivername)
        return

    db_name = url.database or settings.POSTGRES_DB
    try:
        # Connect to default 'postgres' database to check/create target DB
        con = psycopg2.connect(
            user=url.username or settings.POSTGRES_USER,
            password=url.password or settings.POSTGRES_PASSWORD,
            host=url.host or settings.POSTGRES_SERVER,
            port=url.port or settings.POSTGRES_PORT,
            dbname="postgres"
        )
        con.set_isolation_level(ISOLATION_LEVEL_AUTOCOMMIT)
        cur = con.cursor()

        cur.execute("SELECT 1 FROM pg_catalog.pg_database WHERE datname = %s", (db_name,))
        exists = cur.fetchone()

        if not exists:
            logger.info("Database %s does not exist. Creating...", db_name)
            cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(db_name)))
            logger.info("Database %s created successfully.", db_name)
        else:
            logger.info("Database %s already exists.", db_name)

        cur.close()
        con.close()
    except psycopg2.Error as e:
        # Proceeding anyway, maybe it exists or connection params are for the target DB directly
        logger.error("Error creating database: %s", e)

if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    create_database()
