"""Report delivery for deployment outcomes and errors."""
