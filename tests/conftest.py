#
# Pytest Fixtures
#

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest


# Fixtures -------------------------------------------------------------------------------------------------------------

@pytest.fixture
def self_dict() -> dict:
    """Dict holding itself under key 0."""
    d = {}
    d[0] = d
    return d


@pytest.fixture
def cyclic_lists() -> list:
    """
    Outer list of two lists where the second holds itself and the first holds the second.

        a[0][0] is a[1]
        a[1][0] is a[1]
    """
    a = [[None], [None]]
    a[0][0] = a[1]
    a[1][0] = a[0][0]
    return a


@pytest.fixture
def shared_siblings() -> list:
    """Two list slots referencing the same inner list, no cycle."""
    inner = [1]
    return [inner, inner]
