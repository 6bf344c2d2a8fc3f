"""
Criteria engine package.

Resolves whether a configuration is enabled for an environment. The
engine walks the configuration's ancestors (configuration, group, domain)
checking per-environment activation, then runs the configuration's
strategies in declared order against the caller's context entries. The
first strategy that fails or lacks input decides the verdict.

Modules of interest:
- models: Records (Domain, Group, Configuration, Strategy), enums and
  verdict types.
- activation: Per-environment activation lookup with default fallback.
- operators: Comparison rules per strategy type and operation.
- evaluator: Matches a strategy to a context entry.
- engine: The resolution state machine and the flat configuration view.
"""
