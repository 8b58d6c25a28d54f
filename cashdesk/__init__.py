"""Cash-shift ledger service: shifts, transactions, expense categories and their statistics."""
