"""Core modules for the Digital Twin personal finance dashboard."""

from . import chat, config, dynamo, identity, insights, ledger, logging_setup, models, storage, utils, viz

__all__ = [
	"chat",
	"config",
	"dynamo",
	"identity",
	"insights",
	"ledger",
	"logging_setup",
	"models",
	"storage",
	"utils",
	"viz",
]
