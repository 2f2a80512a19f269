"""Per resource type family generator tables."""
