"""ariabench — benchmark orchestration for the Aria runtime."""

__version__ = "0.1.0"
