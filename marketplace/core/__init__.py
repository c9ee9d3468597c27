"""Authorization and approval-workflow core."""
