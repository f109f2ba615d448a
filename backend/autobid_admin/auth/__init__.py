"""Request and navigation guards enforcing the admin RBAC table."""
