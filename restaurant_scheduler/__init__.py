"""Weekly shift scheduling for a single-location restaurant.

Modules:
- config: load and validate scheduler tunables (YAML or JSON)
- domain: dataclass model, SQLAlchemy tables and the schedule repository
- services: time helpers, label normalization, constraint checks, ranking, template expansion
- engine: ordered scheduling passes and the orchestrator
- io: roster/staffing/override loaders and CSV import/export
- validator: post-generation validation and summaries
- cli: command-line interface entrypoints
"""

__all__ = [
    "config",
    "domain",
    "services",
    "engine",
    "io",
    "validator",
    "cli",
]
