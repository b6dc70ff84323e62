"""Provider adapters: one module per vendor wire protocol."""
