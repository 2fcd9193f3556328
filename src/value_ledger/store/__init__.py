"""Token ledger, acceptance workflow and roster maintenance."""
