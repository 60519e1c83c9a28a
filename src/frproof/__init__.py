"""frproof - prove that functional requirements are exercised by their tests."""

__version__ = "0.1.0"
