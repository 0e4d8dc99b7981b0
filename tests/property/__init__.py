# tests/property/__init__.py
"""Property-based tests for chipqc.

Property-based testing validates invariants that must hold for ALL chip
graphs and routes, not just the specific examples we think of.

Test modules:
- test_planner_properties: channel plans are walks through the waypoints
- test_executor_properties: result partitions and rerouting invariants
"""
