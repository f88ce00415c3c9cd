"""Business services for scoring, approval and custom index construction."""
