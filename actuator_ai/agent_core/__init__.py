"""Actuator core: capabilities, policy, confirmations, sandbox and the pipeline.

Entry point for wiring is ``actuator_ai.agent_core.factory.build_runtime``.
"""
