"""Services for theme resolution, rendering and external integrations."""
