import pytest

from tests.helpers import FixedClock


@pytest.fixture
def clock():
    return FixedClock()
