"""Request, response and index record models."""
