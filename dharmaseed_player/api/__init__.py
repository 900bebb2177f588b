"""HTTP layer: routes, middleware and response envelopes."""
