"""chatguard: admission control, input safety and telemetry for an LLM chat endpoint."""

__version__ = "1.0.0"
