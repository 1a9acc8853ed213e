"""
SeedMix

Seed-track playlist generation: provider recommendations with an
AI-assisted, diversity-constrained discovery fallback and a generated
playlist narrative.
"""

__version__ = "1.0.0"
