"""
Shared, cross-cutting code for the catalog resolver.

`core/` should contain small building blocks that multiple features use
(DB wiring, settings, error types). Keep feature-specific SQL and resolution
logic in the corresponding feature package (e.g. `catalog/`).
"""
