"""Core (UI-agnostic) dividend dashboard logic.

This package contains:
- CSV parsing and header normalization (CSV text -> canonical records)
- per-ticker summaries and calendar-bucketed chart series
- table sorting and pagination over explicit state containers
- chart helpers (Altair -> Vega-Lite spec dict)
"""
