"""HTTP blueprints exposed by the support chat backend."""
