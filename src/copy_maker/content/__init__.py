"""Content generation and threading.

Architecture:
- ContentOrchestrator: runs operations and threads results into the graph
- ContentGraph: DAG of generated nodes with provenance
- WordCountLoop: bounded revise-and-recheck loop toward a target length
- build_prompts: pure prompt assembly for every generation mode
- STYLES: data registry of voice styles
"""

from .models import (
    AlternativeDerivation,
    BaseDerivation,
    ConfigurationModel,
    ContentNode,
    ContentScore,
    CopyMode,
    GeoCriterion,
    GeoScore,
    InputEvaluation,
    OutputSection,
    SeoItem,
    SeoMetadata,
    StyleDerivation,
    WordCountPreset,
    count_words,
    validate_configuration,
)
from .tolerance import ToleranceMode, TolerancePolicy
from .styles import STYLES, StyleCategory, VoiceStyle, get_style, list_styles
from .prompts import PromptMode, PromptPair, build_prompts, build_revision_instruction
from .graph import ContentGraph
from .store import SessionSnapshot, SessionState, SessionStore
from .word_count import LoopResult, WordCountLoop
from .orchestrator import ContentOrchestrator

__all__ = [
    # Models
    "AlternativeDerivation",
    "BaseDerivation",
    "ConfigurationModel",
    "ContentNode",
    "ContentScore",
    "CopyMode",
    "GeoCriterion",
    "GeoScore",
    "InputEvaluation",
    "OutputSection",
    "SeoItem",
    "SeoMetadata",
    "StyleDerivation",
    "WordCountPreset",
    "count_words",
    "validate_configuration",
    # Word count
    "ToleranceMode",
    "TolerancePolicy",
    "LoopResult",
    "WordCountLoop",
    # Styles
    "STYLES",
    "StyleCategory",
    "VoiceStyle",
    "get_style",
    "list_styles",
    # Prompts
    "PromptMode",
    "PromptPair",
    "build_prompts",
    "build_revision_instruction",
    # Graph and state
    "ContentGraph",
    "SessionSnapshot",
    "SessionState",
    "SessionStore",
    # Orchestration
    "ContentOrchestrator",
]
