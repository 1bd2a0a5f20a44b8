"""HTTP routers for the Svein server."""
