"""Admin user directory: users, roles and company-wide metrics."""
