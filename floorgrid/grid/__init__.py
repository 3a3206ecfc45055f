"""Grid creation, validation, repair and monitoring."""
