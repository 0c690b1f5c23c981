"""Random review sentiment probes and a webhook event logger."""

__all__ = ["config", "dataset", "event_logger", "inference", "interpret", "reviewer"]
