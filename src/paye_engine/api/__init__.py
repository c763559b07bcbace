"""HTTP API for the PAYE engine."""
