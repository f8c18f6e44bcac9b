"""
cjbdash - Test Infrastructure (conftest.py)
===========================================
Provides:
  - a deterministic 50-incident sample spanning all quadrants/types/dates
  - the three-incident scenario used throughout the store tests
  - an IncidentStore fixture with an event recorder attached
"""

from datetime import datetime

import pytest

from cjbdash.engine import IncidentStore
from cjbdash.models import Incident, NOT_SPECIFIED, QUADRANTS

TYPES = ["Migración", "DIGESETT", "Policía Nacional", "Seguridad", "Otros"]
OFFICERS = ["Oficial Pérez", "Oficial Gómez", NOT_SPECIFIED]
ACTIONS = ["Arresto del individuo", "Advertencia verbal", "", "Clausura del local; multa"]


def make_incident(i, **overrides):
    """Incident number `i` of the synthetic sample (every 7th has no date)."""
    values = dict(
        id=i,
        date=None if i % 7 == 0 else datetime(2025, 6 + i % 3, 1 + i % 28, i % 24, (i * 7) % 60),
        type=TYPES[i % len(TYPES)],
        quadrant=QUADRANTS[i % 4],
        officer=OFFICERS[i % 3],
        undocumented=i % 4,
        narrative="Accidente de tránsito en la avenida" if i % 6 == 0 else f"Reporte de rutina {i}",
        actions=ACTIONS[i % 4],
        person_name=f"Persona {i}",
    )
    values.update(overrides)
    return Incident(**values)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def sample():
    return [make_incident(i) for i in range(1, 51)]


@pytest.fixture
def scenario():
    return [
        Incident(id=1, date=datetime(2025, 7, 1, 10, 0), type="Migración", quadrant="B1",
                 officer="Oficial Pérez", undocumented=2),
        Incident(id=2, date=datetime(2025, 7, 1, 14, 0), type="DIGESETT", quadrant="B2",
                 officer="Oficial Gómez", undocumented=0),
        Incident(id=3, date=datetime(2025, 7, 2, 9, 0), type="Migración", quadrant="B1",
                 officer=NOT_SPECIFIED, undocumented=1),
    ]


class EventRecorder:
    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def kinds(self):
        return [e.kind for e in self.events]


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def store(sample, recorder):
    s = IncidentStore()
    s.load(sample)
    s.bus.subscribe_all(recorder)
    return s


@pytest.fixture
def scenario_store(scenario):
    s = IncidentStore()
    s.load(scenario)
    return s


@pytest.fixture
def make():
    """Factory for one synthetic incident: make(i, **overrides)."""
    return make_incident
