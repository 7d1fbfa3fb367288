"""Services that inspect and modify repositories."""
