"""
card_synthesis: fuse independent analysis-card outputs into one verdict.

Entry points:
  synthesis.engine.SynthesisEngine    fuse one symbol's card outputs
  producers.runner.run_synthesis      gather producer outputs, then fuse
  cli.app                             ``card-synthesis`` command line
"""

__version__ = "0.1.0"
