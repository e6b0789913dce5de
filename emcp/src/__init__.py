"""
Client package for the Phoenix Contact EM-CP-PP-ETH charge controller.

Reads the controller's Modbus register map over TCP, decodes the status
and measurement blocks into a typed snapshot, and exposes the handful of
writable settings (charging current, availability, digital mode) plus the
HTTP hard-reset side channel.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""
