"""Case Tree: track a case through criminal-court stages and render it as a tree."""

__version__ = "0.1.0"
