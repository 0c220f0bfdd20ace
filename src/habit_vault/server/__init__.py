"""HTTP surface for the reminder dispatcher."""
