"""
Root-level conftest for all tests.

Modules such as the ARQ worker and the FastAPI app read settings at import
time, so the required infrastructure variables must exist before collection.
"""
import os

for name, value in {
    "POSTGRES_USER": "unit_test_user",
    "POSTGRES_HOST": "localhost",
    "POSTGRES_PASSWORD": "unit_test_password",
    "POSTGRES_PORT": "5432",
    "POSTGRES_DB": "unit_test_db",
    "REDIS_HOST": "localhost",
    "REDIS_PORT": "6379",
}.items():
    os.environ.setdefault(name, value)
