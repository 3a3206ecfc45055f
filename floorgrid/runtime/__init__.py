"""Runtime primitives shared by grid components."""
