import pytest

from utils import StubCluster


@pytest.fixture
def empty_cluster():
    """Cluster handle that reports no data structures."""
    return StubCluster()


@pytest.fixture
def populated_cluster():
    """Cluster handle with a few structures, one listed twice."""
    return StubCluster(["orders", "customers", "events-topic", "orders"])


@pytest.fixture
def broken_cluster():
    """Cluster handle whose lookup always fails."""
    return StubCluster(error=RuntimeError("Client is not active"))
