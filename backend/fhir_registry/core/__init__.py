"""Core: error hierarchy and the boundary protocols the routes depend on."""
