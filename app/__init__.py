"""HTTP surface for the catalog curator."""
