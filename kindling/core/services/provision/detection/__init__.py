"""L3 Detection — read-only probes (platform identity, tool versions)."""
