"""HTTP routers mounted under `/api/v1`."""
