"""Shared fixtures for weightvec tests."""

import logging
import random

import pytest

from weightvec.config import ConfigManager, VectorConfig, reset_config, set_config


@pytest.fixture(autouse=True)
def default_config(monkeypatch):
    """Run every test against the built-in defaults, ignoring the environment."""
    for env_var in list(ConfigManager.ENV_MAPPINGS) + ["WEIGHTVEC_CONFIG"]:
        monkeypatch.delenv(env_var, raising=False)
    config = VectorConfig()
    set_config(config)
    yield config
    reset_config()


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo handlers the CLI or a test attached to the weightvec logger."""
    yield
    logger = logging.getLogger("weightvec")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def rng():
    """Seeded uniform source."""
    return random.Random(1234)


class SequenceSource:
    """Uniform source that replays a fixed list of draws."""

    def __init__(self, draws):
        self._draws = list(draws)
        self._pos = 0

    def random(self):
        value = self._draws[self._pos % len(self._draws)]
        self._pos += 1
        return value


@pytest.fixture
def sequence_source():
    return SequenceSource
