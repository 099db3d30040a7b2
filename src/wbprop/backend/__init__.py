"""Flask JSON API exposing the query service to the dashboard."""
