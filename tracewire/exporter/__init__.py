"""Exporters for delivering spans to backends."""

from tracewire.exporter.console_exporter import ConsoleExporter
from tracewire.exporter.otlp_exporter import OTLPExporter

__all__ = ["ConsoleExporter", "OTLPExporter"]
