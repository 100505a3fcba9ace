"""
Provisioning — getting tools onto the machine.

    detection/      platform and installed-version probes
    domain/         pure rules (version constraints)
    data/           URLs, well-known paths, installables
    execution/      side effects: subprocess, download, file writes
    resolver/       the four-step artifact resolution chain
    orchestration/  stage sequencing and the nix use cases
"""
