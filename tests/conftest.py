"""Pytest configuration and shared fixtures."""
import pytest
from dataclasses import dataclass, field
from typing import List

from replayproxy import create, reset_recorder_config


def get_data():
    """Fresh mock graph used across tests."""
    return {
        'one': 'foo',
        'two': [1, 'two', 3, 'four', 5, [6, 7]],
        'three': {
            'foo': 'test',
            'bar': 'this',
        },
    }


@dataclass
class Inner:
    """Nested attribute object for dataclass graphs."""
    level: int = 1
    label: str = "inner"


@dataclass
class Settings:
    """Attribute-based graph with a list and a nested dataclass."""
    name: str = "default"
    tags: List[str] = field(default_factory=list)
    nested: Inner = field(default_factory=Inner)


@pytest.fixture(autouse=True)
def reset_config():
    """Restore the default recorder configuration around every test."""
    reset_recorder_config()
    yield
    reset_recorder_config()


@pytest.fixture
def data():
    """Provide the raw mock graph."""
    return get_data()


@pytest.fixture
def proxy(data):
    """Provide a tracked handle around the ``data`` fixture."""
    return create(data)
