"""Query parsing: property extraction, keywords and intent reconciliation."""
