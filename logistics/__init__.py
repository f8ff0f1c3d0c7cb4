"""Order filtering, aggregation and ranking for the medical-device logistics dashboard."""
