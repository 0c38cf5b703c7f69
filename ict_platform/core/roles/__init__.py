"""Role lookups consumed by the approval engine's identity provider."""
