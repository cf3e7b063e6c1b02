"""Small helpers shared across Quayside packages."""
