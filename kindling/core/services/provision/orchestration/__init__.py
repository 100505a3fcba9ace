"""L5 Orchestration — stage sequencing and the top-level nix use cases."""
