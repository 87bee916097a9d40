"""
Database module - async MongoDB (Motor) and Postgres (psycopg2) adapters.

Usage:
    from common.database import MongoDB, PostgresClient

    mongo = MongoDB()
    await mongo.connect(uri, database_name, indexes)
    records = mongo.db["child_records"]

    pg = PostgresClient(host, port, user, password, database)
    rows = await pg.fetch_all("SELECT ...", (param,))
"""

from common.database.mongodb import MongoDB, mask_uri
from common.database.postgres import PostgresClient, DatabaseUnavailableError

__all__ = [
    "MongoDB",
    "mask_uri",
    "PostgresClient",
    "DatabaseUnavailableError",
]
