"""Core modules for the Invoice Insights application."""

from . import alerts, features, ingest, insights, records, risk, synth, utils, viz

__all__ = [
	"alerts",
	"features",
	"ingest",
	"insights",
	"records",
	"risk",
	"synth",
	"utils",
	"viz",
]
