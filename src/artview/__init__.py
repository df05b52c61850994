"""artview: inline math, plots and images for terminal text viewports."""

# Configuration
from artview.config import Config

# Content scanning
from artview.content import ContentKind, ContentRegion, HeaderMarker, scan

# Draw pass
from artview.drawer import DrawResult, draw

# Engine and boundary operations
from artview.engine import Engine

# Errors
from artview.errors import (
    ArtError,
    ArtIOError,
    ArtNotFoundError,
    DecodeError,
    FoldMismatchError,
    GenerationError,
    MetadataError,
    ToolchainMissingError,
)

# Folds and ordered index
from artview.folds import apply_folds
from artview.index import FoldEntry, NodeEntry, OrderedIndex

# Render pipeline
from artview.node import Empty, Failed, Node, Ready, RenderHooks, Running

# Viewport classification
from artview.node_view import (
    GeometryKey,
    Hidden,
    LowerBorder,
    NodeView,
    UpperBorder,
    Visible,
    classify,
    required_placement,
)

# Reconciliation
from artview.registry import NodeRegistry, Reconciliation, reconcile

# Host JSON
from artview.wire import Envelope, Metadata

__all__ = [
    # Config
    "Config",
    # Content
    "ContentKind",
    "ContentRegion",
    "HeaderMarker",
    "scan",
    # Draw
    "DrawResult",
    "draw",
    # Engine
    "Engine",
    # Errors
    "ArtError",
    "ArtIOError",
    "ArtNotFoundError",
    "DecodeError",
    "FoldMismatchError",
    "GenerationError",
    "MetadataError",
    "ToolchainMissingError",
    # Folds / index
    "apply_folds",
    "FoldEntry",
    "NodeEntry",
    "OrderedIndex",
    # Render pipeline
    "Empty",
    "Failed",
    "Node",
    "Ready",
    "RenderHooks",
    "Running",
    # Viewport
    "GeometryKey",
    "Hidden",
    "LowerBorder",
    "NodeView",
    "UpperBorder",
    "Visible",
    "classify",
    "required_placement",
    # Registry
    "NodeRegistry",
    "Reconciliation",
    "reconcile",
    # Wire
    "Envelope",
    "Metadata",
]
