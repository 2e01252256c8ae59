"""Streamlit UI components."""

from .sidebar import render_sidebar
from .exploration import render_exploration
from .pipeline import render_pipeline, unmount_pipeline
from .navigation import render_navbar, switch_view

__all__ = [
    "render_sidebar",
    "render_exploration",
    "render_pipeline",
    "unmount_pipeline",
    "render_navbar",
    "switch_view",
]
