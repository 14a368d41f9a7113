"""
Signup Orchestration app.

Drives one signup request through a strict, linear chain of stages:
validate → create_account → send_verification, with notify_failure on any error.

Key concepts:
- Single orchestrator with correlation IDs (trace_id/run_id)
- State machine: RECEIVED → VALIDATING → CREATING → NOTIFYING → COMPLETED (or FAILED)
- Typed DTOs between stages, idempotency key threaded through side effects
- Monitoring signals at every stage boundary
"""
