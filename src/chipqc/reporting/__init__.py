# src/chipqc/reporting/__init__.py
"""Event/result reporting: append-only event log, summaries and JSONL persistence."""

from chipqc.reporting.jsonl import JsonlEventWriter, event_to_record, read_event_log, write_event_log
from chipqc.reporting.log import EventLog, LogEntry
from chipqc.reporting.summary import latest_test, partition, summarize

__all__ = [
    "EventLog",
    "JsonlEventWriter",
    "LogEntry",
    "event_to_record",
    "latest_test",
    "partition",
    "read_event_log",
    "summarize",
    "write_event_log",
]
