"""Shared fixtures for the test suite."""

import logging

import httpx
import pytest

from shared.helper.HelperConfig import HelperConfig
from tests.fakes import TEST_ENV, Clock, FakeEmbedClient, InMemoryStore


@pytest.fixture
def env(monkeypatch):
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    return monkeypatch


@pytest.fixture
def logger():
    return logging.getLogger("indiesearch.tests")


@pytest.fixture
def helper_config(env, logger):
    return HelperConfig(logger=logger)


@pytest.fixture
def embed_client():
    return FakeEmbedClient()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def transport_retries(monkeypatch):
    """Records the retries each default httpx transport is built with."""
    recorded: list[int] = []
    real_transport = httpx.AsyncHTTPTransport

    def build(*args, retries: int = 0, **kwargs):
        recorded.append(retries)
        return real_transport(*args, retries=retries, **kwargs)

    monkeypatch.setattr(httpx, "AsyncHTTPTransport", build)
    return recorded
