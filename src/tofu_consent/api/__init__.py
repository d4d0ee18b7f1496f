"""API routes and middleware."""
