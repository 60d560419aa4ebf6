"""Pytest configuration and fixtures for flatdb tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import pytest
from prometheus_client import CollectorRegistry

from flatdb.application import TableEngine
from flatdb.infrastructure.config import Config, LockConfig, StorageConfig
from flatdb.infrastructure.metrics import MetricsRegistry


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_config(temp_dir: Path) -> Config:
    """Provide a test configuration with a temporary data directory."""
    return Config(
        storage=StorageConfig(
            data_dir=temp_dir / "data",
            fsync=False,  # Faster for tests
        ),
        lock=LockConfig(
            retry_interval_seconds=0.01,
            timeout_seconds=1.0,
        ),
    )


@pytest.fixture
def collector_registry() -> CollectorRegistry:
    """Provide a private Prometheus registry for each test."""
    return CollectorRegistry(auto_describe=True)


@pytest.fixture
def metrics_registry(collector_registry: CollectorRegistry) -> MetricsRegistry:
    """Provide a fresh metrics registry for each test."""
    # Use a separate registry to avoid conflicts between tests
    return MetricsRegistry(registry=collector_registry)


@pytest.fixture
def engine(test_config: Config, metrics_registry: MetricsRegistry) -> TableEngine:
    """Provide a table engine wired to the test config and metrics."""
    return TableEngine(config=test_config, metrics=metrics_registry)


@pytest.fixture
def users_table(temp_dir: Path, engine: TableEngine) -> Path:
    """Provide a users table with two rows."""
    path = temp_dir / "users.tsv"
    engine.create(path, ["id", "name", "email", "age"])
    engine.insert(path, {"id": "1", "name": "Bo", "email": "bo@test.com", "age": "41"})
    engine.insert(path, {"id": "2", "name": "Spencer", "email": "sp@test.com", "age": "12"})
    return path


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")
