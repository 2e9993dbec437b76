"""Resource records and consumers used by the test suite."""
