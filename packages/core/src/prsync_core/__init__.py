"""Pull request file-comment reconciliation."""
