"""kindling — take a bare machine to a working Nix-based dev environment."""

__version__ = "0.1.0"
