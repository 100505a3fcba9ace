"""L4 Execution — side-effecting operations (subprocess, download, files)."""
