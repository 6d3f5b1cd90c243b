"""Lead, booking and commission back office for the travel agency."""
