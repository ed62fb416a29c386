"""HTTP helpers shared by the registry API routers."""
