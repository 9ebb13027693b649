"""Admin console client: request pipeline and paginated list state."""
