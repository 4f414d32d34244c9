"""cirrus: terminal browser for DynamoDB tables and CloudWatch logs."""

__version__ = "0.1.0"
