"""
card_synthesis.reporting: render and export composite results.

It does NOT fuse anything; every function takes a finished CompositeResult.

Modules:
  formatters  ASCII terminal formatters for Typer CLI commands.
  export      JSON / CSV flat-file export helpers.
"""
