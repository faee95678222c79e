"""Pipeline orchestrator.

``PipelineOrchestrator`` runs the control loop for one inbound user message
as a LangGraph state machine:

``build_context -> render_tools -> query_model -> parse_intent`` and then
exactly one handler node chosen from the parsed intent:

- ``handle_rejection``: empty output or detected injection,
- ``handle_response`` / ``handle_clarify`` / ``handle_observe``: no action,
- ``handle_action``: capability lookup, autonomy decision, then execute,
  announce-and-execute, park a confirmation, or refuse,
- ``handle_plan``: return the step list, every step ``pending``.

Confirmations are resolved through separate entry points
(``confirm_and_execute`` / ``cancel_confirmation``). Approvals are recorded
for pattern learning only there.

The external contract of ``process_pipeline`` is that it always returns a
``PipelineResponse``; unexpected exceptions degrade to an apology.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from langgraph.graph import END, StateGraph

from ..schemas.context import SituationalContext
from ..schemas.domain import (
    AutonomyLevel,
    ErrorCode,
    ExecutionLogEntry,
    ExecutionResult,
    RiskLevel,
    SimulationResult,
    ToolCapability,
    risk_at_least,
)
from ..schemas.intents import ActionIntent, ClarifyIntent, ObserveIntent, PlanIntent, ResponseIntent
from ..schemas.pipeline import (
    ClarificationView,
    ConversationTurn,
    PendingConfirmationView,
    PipelineResponse,
    PlanStepView,
    PlanView,
)
from ..llm.base import ChatMessage, ChatOptions
from .context import build_situational_context
from .models import PipelineDeps, _PipelineState
from .parser import parse_intent
from .prompt import generate_system_prompt, render_tool_definitions

logger = logging.getLogger(__name__)

PARSE_FAILURE_REPLY = "I'm sorry, I had trouble understanding that. Could you rephrase?"
INJECTION_REPLY = "I can't process that request."
DENY_REPLY = "I'm not able to do that."
ERROR_REPLY = "I encountered an error processing your request. Please try again."


def unknown_tool_reply(action: str) -> str:
    return f'I don\'t have a tool called "{action}". Let me help you another way.'


class PipelineOrchestrator:
    """Turn user messages into gated, audited tool executions."""

    def __init__(
        self,
        deps: PipelineDeps,
        *,
        chat_options: Optional[ChatOptions] = None,
        custom_instructions: Optional[str] = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            deps: Registry, policy, confirmation, model and audit collaborators.
            chat_options: Options for every model call (default temperature
                0.7, 1024 max tokens).
            custom_instructions: Optional operator text appended to the system prompt.
        """
        self._deps = deps
        self._chat_options = chat_options or ChatOptions(temperature=0.7, max_tokens=1024)
        self._custom_instructions = custom_instructions
        self._graph = self._build_graph()

    @property
    def deps(self) -> PipelineDeps:
        return self._deps

    def _build_graph(self):
        """Build and compile the LangGraph state machine."""
        g: StateGraph = StateGraph(_PipelineState)
        g.add_node("build_context", self._node_build_context)
        g.add_node("render_tools", self._node_render_tools)
        g.add_node("query_model", self._node_query_model)
        g.add_node("parse_intent", self._node_parse_intent)
        g.add_node("handle_rejection", self._node_handle_rejection)
        g.add_node("handle_response", self._node_handle_response)
        g.add_node("handle_clarify", self._node_handle_clarify)
        g.add_node("handle_action", self._node_handle_action)
        g.add_node("handle_plan", self._node_handle_plan)
        g.add_node("handle_observe", self._node_handle_observe)

        g.set_entry_point("build_context")
        g.add_edge("build_context", "render_tools")
        g.add_edge("render_tools", "query_model")
        g.add_edge("query_model", "parse_intent")
        g.add_conditional_edges(
            "parse_intent",
            self._route_after_parse,
            {
                "rejection": "handle_rejection",
                "response": "handle_response",
                "clarify": "handle_clarify",
                "action": "handle_action",
                "plan": "handle_plan",
                "observe": "handle_observe",
            },
        )
        for handler in (
            "handle_rejection",
            "handle_response",
            "handle_clarify",
            "handle_action",
            "handle_plan",
            "handle_observe",
        ):
            g.add_edge(handler, END)
        return g.compile()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def process_pipeline(
        self,
        user_id: str,
        message: str,
        conversation_history: Optional[Sequence[ConversationTurn]] = None,
        context_overrides: Optional[Dict[str, Any]] = None,
    ) -> PipelineResponse:
        """
        Process one user message end to end.

        Never raises: provider failures, parse failures and unexpected
        exceptions all become an apologetic ``PipelineResponse``.
        """
        state: _PipelineState = {
            "user_id": user_id,
            "message": message,
            "history": list(conversation_history or []),
            "overrides": context_overrides,
        }
        try:
            final = await self._graph.ainvoke(state)
        except Exception:
            logger.exception("Pipeline failed for user %s", user_id)
            return PipelineResponse(response=ERROR_REPLY)
        response = final.get("response")
        if response is None:
            logger.error("Pipeline finished without a response for user %s", user_id)
            return PipelineResponse(response=ERROR_REPLY)
        return response

    async def confirm_and_execute(self, confirmation_id: str, user_id: str) -> Optional[ExecutionResult]:
        """
        Execute a pending action the user explicitly accepted.

        The confirmation is consumed first, so of two concurrent calls with
        the same id only one executes; the other returns None, as does an
        unknown, expired or foreign id.
        """
        pending = await self._deps.confirmations.consume(confirmation_id, user_id)
        if pending is None:
            logger.info("Confirmation %s not found for %s", confirmation_id, user_id)
            return None

        intent = pending.intent
        await self._deps.autonomy.history.record_approval(
            user_id, intent.action, intent.params, pending.context_snapshot
        )
        result = await self._execute_action(user_id, intent, confirmed_by="user")
        await self._deps.audit.audit_log(
            "ACTION_CONFIRMED",
            {
                "user_id": user_id,
                "confirmation_id": confirmation_id,
                "action": intent.action,
                "level": pending.decision.level.value,
                "result": "success" if result.success else "failed",
            },
        )
        return result

    async def cancel_confirmation(self, confirmation_id: str, user_id: str) -> bool:
        """Discard a pending action without executing it."""
        pending = await self._deps.confirmations.consume(confirmation_id, user_id)
        if pending is None:
            return False
        await self._deps.audit.audit_log(
            "ACTION_CANCELLED",
            {"user_id": user_id, "confirmation_id": confirmation_id, "action": pending.intent.action},
        )
        return True

    async def simulate_pending(self, confirmation_id: str, user_id: str) -> Optional[SimulationResult]:
        """Preview a pending action without consuming its confirmation."""
        pending = await self._deps.confirmations.get(confirmation_id, user_id)
        if pending is None:
            return None
        return await self._deps.registry.simulate(pending.intent.action, pending.intent.params)

    async def shutdown(self) -> None:
        await self._deps.confirmations.stop()

    # ------------------------------------------------------------------
    # Graph nodes
    # ------------------------------------------------------------------

    async def _node_build_context(self, state: _PipelineState) -> Dict[str, Any]:
        return {"context": build_situational_context(state.get("overrides"))}

    async def _node_render_tools(self, state: _PipelineState) -> Dict[str, Any]:
        return {"tools": render_tool_definitions(self._deps.registry.capabilities_by_category())}

    async def _node_query_model(self, state: _PipelineState) -> Dict[str, Any]:
        """Single blocking model call; retries are the provider's concern."""
        system_prompt = generate_system_prompt(
            state["tools"], state["context"], custom_instructions=self._custom_instructions
        )
        messages: List[ChatMessage] = [ChatMessage(role="system", content=system_prompt)]
        messages.extend(ChatMessage(role=turn.role, content=turn.content) for turn in state["history"])
        messages.append(ChatMessage(role="user", content=state["message"]))
        raw = await self._deps.llm.chat(messages, self._chat_options)
        return {"raw_output": raw}

    async def _node_parse_intent(self, state: _PipelineState) -> Dict[str, Any]:
        return {"parsed": parse_intent(state["raw_output"], self._deps.guard)}

    def _route_after_parse(self, state: _PipelineState) -> str:
        parsed = state["parsed"]
        if parsed.injection_detected or not parsed.success or parsed.intent is None:
            return "rejection"
        return parsed.intent.type

    async def _node_handle_rejection(self, state: _PipelineState) -> Dict[str, Any]:
        parsed = state["parsed"]
        if parsed.injection_detected:
            await self._deps.audit.audit_log(
                "INJECTION_BLOCKED",
                {"user_id": state["user_id"], "message": self._deps.guard.redact(state["message"][:100])},
            )
            return {"response": PipelineResponse(response=INJECTION_REPLY)}
        logger.warning("Unparseable model output for %s: %s", state["user_id"], parsed.errors)
        return {"response": PipelineResponse(response=PARSE_FAILURE_REPLY)}

    async def _node_handle_response(self, state: _PipelineState) -> Dict[str, Any]:
        intent = state["parsed"].intent
        assert isinstance(intent, ResponseIntent)
        return {"response": PipelineResponse(response=intent.text, intent=intent)}

    async def _node_handle_clarify(self, state: _PipelineState) -> Dict[str, Any]:
        intent = state["parsed"].intent
        assert isinstance(intent, ClarifyIntent)
        return {
            "response": PipelineResponse(
                response=intent.question,
                intent=intent,
                clarification=ClarificationView(question=intent.question, options=intent.options),
            )
        }

    async def _node_handle_observe(self, state: _PipelineState) -> Dict[str, Any]:
        intent = state["parsed"].intent
        assert isinstance(intent, ObserveIntent)
        return {"response": PipelineResponse(response=intent.observation, intent=intent)}

    async def _node_handle_plan(self, state: _PipelineState) -> Dict[str, Any]:
        intent = state["parsed"].intent
        assert isinstance(intent, PlanIntent)
        steps = "\n".join(f"{i}. {step.reasoning or step.action}" for i, step in enumerate(intent.steps, start=1))
        return {
            "response": PipelineResponse(
                response=f"{intent.summary}\n\nSteps:\n{steps}\n\nShall I proceed?",
                intent=intent,
                plan=PlanView(
                    goal=intent.goal,
                    summary=intent.summary,
                    steps=[PlanStepView(action=step.action) for step in intent.steps],
                ),
            )
        }

    async def _node_handle_action(self, state: _PipelineState) -> Dict[str, Any]:
        parsed = state["parsed"]
        intent = parsed.intent
        assert isinstance(intent, ActionIntent)
        user_id = state["user_id"]
        context: SituationalContext = state["context"]

        capability = self._deps.registry.get_capability(intent.action)
        if capability is None:
            logger.info("Model asked for unknown tool %s", intent.action)
            return {"response": PipelineResponse(response=unknown_tool_reply(intent.action), intent=intent)}

        decision = await self._deps.autonomy.determine_autonomy(intent, capability, context, user_id=user_id)
        await self._deps.audit.audit_log(
            "AUTONOMY_DECISION",
            {
                "user_id": user_id,
                "action": intent.action,
                "level": decision.level.value,
                "reason": decision.reason,
                "risk_level": capability.risk_level.value,
            },
        )

        if decision.level == AutonomyLevel.DENY:
            await self._deps.audit.audit_log(
                "ACTION_DENIED",
                {"user_id": user_id, "action": intent.action, "reason": decision.reason},
            )
            denied = ExecutionResult.failure(ErrorCode.DENIED, decision.reason, recoverable=False)
            return {"response": PipelineResponse(response=DENY_REPLY, intent=intent, execution_result=denied)}

        if decision.requires_confirmation:
            confirmation_id = await self._deps.confirmations.create(user_id, intent, decision, context)
            pending = await self._deps.confirmations.get(confirmation_id, user_id)
            prompt = decision.display_message or "Confirm this action?"
            preamble = parsed.preamble or intent.reasoning
            text = prompt if not preamble or preamble == prompt else f"{preamble}\n\n{prompt}"
            view = PendingConfirmationView(
                id=confirmation_id,
                action=intent.action,
                params=intent.params,
                display_message=decision.display_message or f"Execute {intent.action}?",
                display_params=decision.display_params,
                expires_at=pending.expires_at if pending is not None else self._deps.confirmations.clock(),
            )
            return {"response": PipelineResponse(response=text, intent=intent, pending_confirmation=view)}

        result = await self._execute_action(user_id, intent, capability=capability)
        outcome = (result.message or "Done.") if result.success else f"Sorry, that didn't work: {result.message}"
        if decision.level == AutonomyLevel.ANNOUNCE:
            announcement = decision.display_message or f"Executing {intent.action}"
            outcome = f"{announcement}. {outcome}"
        return {"response": PipelineResponse(response=outcome, intent=intent, execution_result=result)}

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def _execute_action(
        self,
        user_id: str,
        intent: ActionIntent,
        *,
        capability: Optional[ToolCapability] = None,
        confirmed_by: str = "auto",
    ) -> ExecutionResult:
        """Run one action through the registry and record it in audit and the execution log."""
        capability = capability or self._deps.registry.get_capability(intent.action)
        risk = capability.risk_level if capability is not None else RiskLevel.none

        size_error = self._deps.guard.validate_tool_args(intent.params)
        if size_error is not None:
            result = ExecutionResult.failure(ErrorCode.VALIDATION_FAILED, size_error, recoverable=False)
        else:
            await self._deps.audit.audit_log(
                "ACTION_EXECUTE",
                {
                    "user_id": user_id,
                    "action": intent.action,
                    "params": self._deps.guard.redact(str(intent.params)),
                    "risk_level": risk.value,
                    "confirmed_by": confirmed_by,
                },
            )
            started = time.monotonic()
            result = await self._deps.registry.execute(intent.action, intent.params)
            logger.info(
                "Executed %s for %s: success=%s (%d ms)",
                intent.action,
                user_id,
                result.success,
                int((time.monotonic() - started) * 1000),
            )

        await self._deps.audit.audit_log(
            "ACTION_COMPLETE",
            {
                "user_id": user_id,
                "action": intent.action,
                "success": result.success,
                "error_code": result.error.code if result.error else None,
                "duration_ms": result.meta.duration_ms,
                "side_effects": len(result.side_effects),
            },
        )
        if result.side_effects:
            await self._deps.audit.audit_log(
                "ACTION_SIDE_EFFECTS",
                {
                    "user_id": user_id,
                    "action": intent.action,
                    "side_effects": [effect.model_dump(mode="json") for effect in result.side_effects],
                },
            )
        if risk_at_least(risk, RiskLevel.high):
            await self._deps.audit.audit_log(
                "DANGEROUS_ACTION",
                {
                    "user_id": user_id,
                    "action": intent.action,
                    "risk_level": risk.value,
                    "success": result.success,
                    "confirmed_by": confirmed_by,
                },
            )
        await self._log_execution(user_id, intent, result, risk, confirmed_by)
        return result

    async def _log_execution(
        self,
        user_id: str,
        intent: ActionIntent,
        result: ExecutionResult,
        risk: RiskLevel,
        confirmed_by: str,
    ) -> None:
        if self._deps.execution_log is None:
            return
        entry = ExecutionLogEntry(
            user_id=user_id,
            action=intent.action,
            params=intent.params,
            success=result.success,
            message=result.message,
            error_code=result.error.code if result.error else None,
            side_effects=[effect.model_dump(mode="json") for effect in result.side_effects],
            risk_level=risk,
            executor_id=result.meta.executor_id,
            duration_ms=result.meta.duration_ms,
            confirmed_by=confirmed_by,
        )
        try:
            await self._deps.execution_log.append(entry)
        except Exception as exc:
            logger.warning(f"Failed to write execution log for {intent.action}: {exc}")
