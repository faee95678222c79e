"""Actuator-AI.

This package contains the action-execution core of a personal automation agent:
it takes a structured intent produced by an external language model, decides
how much autonomy to grant it, and, when permitted, executes it against
real-world effectors while tracking every side effect it causes.

High-level architecture
-----------------------

- ``actuator_ai.agent_core``:

  - Tool executors and the ``ExecutorRegistry`` (capability metadata,
    validation, simulation, execution).
  - The autonomy policy (risk tiers, learned approvals, user modes).
  - A time-bounded confirmation workflow for gated actions.
  - A sandboxed subprocess layer for untrusted scripts.
  - A LangGraph-based pipeline that turns a user message into a response.

- ``actuator_ai.core``:

  - Logging configuration, the audit sink and the database layer.

- ``actuator_ai.server``:

  - A thin FastAPI surface over the pipeline entry points.

Typical workflow
----------------

Most integrations should build a runtime with
``actuator_ai.agent_core.factory.build_runtime`` and then:

1. Call ``PipelineOrchestrator.process_pipeline`` with the user's message.
2. If the response carries a pending confirmation, show it to the user.
3. Call ``confirm_and_execute`` or ``cancel_confirmation`` with its id.
"""
