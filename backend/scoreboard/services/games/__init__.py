"""Game domain services: timer math, state transitions and the sync engine.

This package contains the logic shared by the controller HTTP routes and
the overlay socket handlers, keeping transport concerns separated from
the game state machine, the versioned cache and the fan-out.
"""
