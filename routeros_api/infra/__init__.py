"""Infrastructure layer: RouterOS API protocol engine and observability."""
