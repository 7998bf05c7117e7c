"""Retrieval-augmented generation: LiteLLM adapters, prompts, orchestrator."""
