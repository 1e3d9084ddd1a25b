"""HTTP surface for the split-testing engine."""
