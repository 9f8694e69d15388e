"""SQLAlchemy model package for the engagement engine."""

from clientpulse.models.agent import Agent
from clientpulse.models.alert import Alert
from clientpulse.models.base import Base
from clientpulse.models.client import Client
from clientpulse.models.interaction import Interaction

__all__ = [
    "Agent",
    "Alert",
    "Base",
    "Client",
    "Interaction",
]
