from .household import HouseholdFactory, UserFactory
from .plant import PlantFactory
from .store import FailingStore, FakeClock

__all__ = [
    "PlantFactory",
    "HouseholdFactory",
    "UserFactory",
    "FailingStore",
    "FakeClock",
]
