"""HTTP surface for timeline hosts."""
