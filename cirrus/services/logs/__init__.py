"""CloudWatch log browser."""
