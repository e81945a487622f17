"""
card_synthesis.producers: the producer side of the card contract.

Cards are free functions ``compute(symbol_data) -> CardOutput``.  Nothing in
the engine imports producer code; producers are handed to the runner as a
card id -> function mapping.

Modules:
  helpers  score / completeness mappings and small builders for producers.
  runner   concurrent gathering with per-producer failure isolation.
"""
