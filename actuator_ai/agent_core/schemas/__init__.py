"""Pydantic domain models for the actuator core.

- ``domain``: capabilities, side effects, execution results, autonomy
  decisions, pending confirmations and persisted records.
- ``intents``: the discriminated union of model intents.
- ``context``: the situational context snapshot.
- ``pipeline``: orchestrator response shapes.
"""
