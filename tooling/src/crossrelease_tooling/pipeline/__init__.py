"""Release pipeline: per-target context and the orchestrator that drives every target, then tags."""
