"""Record source core — query pipeline, presentation mapper, sessions."""
