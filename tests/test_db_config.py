from __future__ import annotations

import unittest

from db.config import normalize_postgres_url, resolve_database_url
from db.session import EnginePoolSettings, create_db_engine


class TestResolveDatabaseUrl(unittest.TestCase):
    def test_database_url_wins(self) -> None:
        url = resolve_database_url(
            {"DATABASE_URL": "postgres://u@h/catalog", "LOCAL_DATABASE_URL": "postgresql://u@l/catalog"}
        )
        self.assertEqual(url, "postgresql+psycopg://u@h/catalog")

    def test_cloud_url_only_in_deployed_environments(self) -> None:
        environ = {
            "CLOUD_DATABASE_URL": "postgresql://u@cloud/catalog",
            "LOCAL_DATABASE_URL": "postgresql://u@local/catalog",
        }
        self.assertEqual(resolve_database_url(environ), "postgresql+psycopg://u@local/catalog")
        self.assertEqual(
            resolve_database_url({**environ, "ENVIRONMENT": "Production"}),
            "postgresql+psycopg://u@cloud/catalog",
        )

    def test_blank_values_are_ignored(self) -> None:
        with self.assertRaises(RuntimeError):
            resolve_database_url({"DATABASE_URL": "  ", "LOCAL_DATABASE_URL": ""})

    def test_driver_prefix_is_left_alone(self) -> None:
        self.assertEqual(normalize_postgres_url("postgresql+psycopg://u@h/db"), "postgresql+psycopg://u@h/db")
        self.assertEqual(normalize_postgres_url("sqlite:///jobs.db"), "sqlite:///jobs.db")


class TestCreateDbEngine(unittest.TestCase):
    def test_non_postgres_url_is_rejected(self) -> None:
        with self.assertRaises(RuntimeError):
            create_db_engine("sqlite:///jobs.db", EnginePoolSettings())
