"""Click commands registered on the ``locksync`` group."""
