"""
card_synthesis.synthesis: the fusion engine.

Modules:
  validation  contract checks at the fusion boundary (accepted / skipped).
  categories  per-category normalization and the overall composite score.
  sentiment   signed-magnitude reconciliation with a deadband.
  insights    cross-card insight ranking and de-duplication.
  metrics     top-metric ranking across cards.
  conflicts   bullish / bearish disagreement inside a category.
  recommend   follow-up card suggestions and tag aggregation.
  engine      SynthesisEngine: one batch in, one CompositeResult out.
"""
