"""flatdeploy — Compose projects on a flat-network orchestrator."""

__version__ = "0.1.0"
