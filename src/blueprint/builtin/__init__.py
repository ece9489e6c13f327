"""Templates bundled with blueprint."""
