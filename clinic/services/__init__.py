"""Business rules for the workflow.  Views call into these modules."""
