"""HTTP API for the research paper review workflow."""
