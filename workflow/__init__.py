"""Workflow package: service router, LangGraph pipeline, heat conversion, and utilities."""

from workflow.router import Candidate, RouteResult, ServiceRouter, default_adapter_factory
from workflow.graph import GenerationPipeline, build_graph
from workflow.state import PipelineState
from workflow.conditions import route_after_select
from workflow.heat_level import HeatLevelConverter, derive_book
from workflow.callbacks import ProgressCallback, LoggingProgress, RichProgress, chain_progress
from workflow.covers import generate_chapter_image, generate_cover, to_data_url

__all__ = [
    "Candidate",
    "RouteResult",
    "ServiceRouter",
    "default_adapter_factory",
    "GenerationPipeline",
    "build_graph",
    "PipelineState",
    "route_after_select",
    "HeatLevelConverter",
    "derive_book",
    "ProgressCallback",
    "LoggingProgress",
    "RichProgress",
    "chain_progress",
    "generate_chapter_image",
    "generate_cover",
    "to_data_url",
]
