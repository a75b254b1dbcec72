"""Pytest configuration - consistent CWD, a Qt core application and
seeded simulation fixtures.

ControlSurface and SimulationController are QObjects; a QCoreApplication
must exist before the controller's QTimer is started.
"""
from __future__ import annotations

import os
from pathlib import Path

import pytest
from PyQt5.QtCore import QCoreApplication

from particlescape.sim import SimulationEngine, SimulationSettings

ROOT = Path(__file__).resolve().parents[1]


def pytest_sessionstart(session):
    os.chdir(ROOT)


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """One QCoreApplication for the whole test session."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture
def project_root():
    """Return path to project root."""
    return ROOT


@pytest.fixture
def settings():
    """Deterministic settings with default policies."""
    return SimulationSettings(seed=1234, seed_locked=True)


@pytest.fixture
def engine(settings):
    """Initialized engine, all controls at their defaults."""
    eng = SimulationEngine(settings)
    eng.initialize()
    return eng


@pytest.fixture
def stable_engine():
    """Engine whose population only changes through explicit batches."""
    eng = SimulationEngine(SimulationSettings(
        seed=99,
        seed_locked=True,
        spawn_on_first_hit=False,
        removal_hit_threshold=0,
    ))
    eng.initialize()
    return eng
