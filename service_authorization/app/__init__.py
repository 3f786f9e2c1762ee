"""
Authorization Service package for the Access Layer.

This package decides whether a user may perform an operation on a
resource of the task manager (organizations, departments, users, tasks
and their activities, comments, attachments, materials, vendors and
notifications). It provides:

- app.identity: identity normalization shared by every comparison.
- app.rules: rule matrix, matcher, scope/ownership checks and the engine.
- app.guards: FastAPI route guard that enforces a decision before a handler.
- app.main: API surface for advisory permission checks and health.

Guidelines:
- The rule table is loaded once and never mutated at runtime.
- Every ambiguous or malformed input resolves to deny.
- Decisions are binary; never expose rule-table structure to callers.
"""
