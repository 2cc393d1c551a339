"""Prompt text used by the orchestrator."""
