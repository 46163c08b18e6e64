from . import events, maintenance, runs

__all__ = ["events", "maintenance", "runs"]
