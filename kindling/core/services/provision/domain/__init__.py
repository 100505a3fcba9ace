"""L1 Domain — pure rules, no I/O."""
