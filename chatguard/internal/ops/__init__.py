"""
Ops telemetry (in-memory, per process)

Rules:
- NO I/O
- NO blocking behavior
- Every shared structure owns its lock
- Reads never mutate

This module observes the chat gate.
It must never influence admission or safety decisions.
"""
