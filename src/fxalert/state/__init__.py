"""Persisted state -- configuration store and notification cooldown."""

from fxalert.state.cooldown import CooldownPolicy
from fxalert.state.store import ConfigStore

__all__ = ["ConfigStore", "CooldownPolicy"]
