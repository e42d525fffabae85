"""Schema matching, transformation and merge engine."""
