"""
Criteria Service package.

This package decides whether a configuration (feature flag) is enabled
for a runtime environment and a set of typed context inputs, and explains
why. It provides:

- app.main: API surface for criteria evaluation, flat configuration views
  and health.
- app.criteria: Activation resolution, strategy operators, the strategy
  evaluator and the criteria engine.
- app.store: Loader interface for domains, groups, configurations and
  strategies, plus an in-memory implementation seeded from YAML snapshots.

Guidelines:
- Evaluation is stateless; every call reads what the store returns for it.
- Operators fail closed: malformed input is a non-match, never an error.
- Keep reason strings stable; callers key off them.
"""
