"""Provider clients and the reconciliation services built on them."""
