"""CI and release automation for an Nx frontend monorepo."""

__version__ = "1.4.0"
