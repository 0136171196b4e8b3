"""HTTP routers, one per feature area."""
