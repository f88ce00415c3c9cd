"""IndexPilot - LLM security scoring with human-approved custom indexes."""

__version__ = "0.1.0"
