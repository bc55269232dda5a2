"""Hardware mocks for ROOFWATCH tests."""
