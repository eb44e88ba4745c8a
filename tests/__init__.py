"""hashfleet test suite."""
