"""Shared pytest fixtures for the storage adapter tests."""
from tests.fixtures.github_fixtures import *  # noqa: F401,F403
from tests.fixtures.http_server import local_github  # noqa: F401
