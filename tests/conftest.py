"""Shared fixtures."""
import random

import pytest

from taro.engine import ReadingEngine
from taro.selector import Selector
from tests.fakes import loaded_catalog, make_store


@pytest.fixture
def store():
    return make_store()


@pytest.fixture
def catalog(store):
    return loaded_catalog(store)


@pytest.fixture
def engine(catalog, store):
    return ReadingEngine(catalog, Selector(catalog, random.Random(7)), store)
