"""
Data classes and constants for the batch change request system.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


# =============================================================================
# Operation Types
# =============================================================================

class OperationType(str, Enum):
    """Supported batch operations."""
    ADD_CATEGORY = "add_category"
    RENAME_CATEGORY = "rename_category"
    DELETE_CATEGORY = "delete_category"
    MOVE_CATEGORY = "move_category"
    ADD_SENTENCE = "add_sentence"
    EDIT_SENTENCE = "edit_sentence"
    DELETE_SENTENCE = "delete_sentence"
    MOVE_SENTENCE = "move_sentence"


# =============================================================================
# Field Requirements
# =============================================================================

# Required fields for each operation
REQUIRED_FIELDS: Dict[str, List[str]] = {
    OperationType.ADD_CATEGORY.value: ["name"],
    OperationType.RENAME_CATEGORY.value: ["category", "name"],
    OperationType.DELETE_CATEGORY.value: ["category"],
    OperationType.MOVE_CATEGORY.value: ["category", "target"],
    OperationType.ADD_SENTENCE.value: ["category", "source", "target"],
    OperationType.EDIT_SENTENCE.value: ["category", "sentence", "source", "target"],
    OperationType.DELETE_SENTENCE.value: ["category", "sentence"],
    OperationType.MOVE_SENTENCE.value: ["category", "sentence", "target"],
}

# Optional fields for each operation
OPTIONAL_FIELDS: Dict[str, List[str]] = {
    OperationType.ADD_CATEGORY.value: ["color"],
    OperationType.RENAME_CATEGORY.value: ["color"],
    OperationType.DELETE_CATEGORY.value: [],
    OperationType.MOVE_CATEGORY.value: [],
    OperationType.ADD_SENTENCE.value: [],
    OperationType.EDIT_SENTENCE.value: [],
    OperationType.DELETE_SENTENCE.value: [],
    OperationType.MOVE_SENTENCE.value: [],
}

# Fields that hold a sentence reference (id or source text)
SENTENCE_REF_FIELDS: Dict[str, List[str]] = {
    OperationType.EDIT_SENTENCE.value: ["sentence"],
    OperationType.DELETE_SENTENCE.value: ["sentence"],
    OperationType.MOVE_SENTENCE.value: ["sentence", "target"],
}


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class Change:
    """Single change operation."""
    operation: str
    params: Dict[str, Any]

    @property
    def category(self) -> Optional[str]:
        """Get the referenced category name if present in params."""
        return self.params.get("category")

    @property
    def target(self) -> Any:
        """Get the move target (category name or sentence reference)."""
        return self.params.get("target")


@dataclass
class ChangeRequest:
    """Parsed change request from YAML."""
    owner: str
    changes: List[Change]
    description: Optional[str] = None
    source_file: Optional[Path] = None


@dataclass
class ValidationIssue:
    """Validation error for a specific change."""
    index: int
    operation: str
    field: str
    message: str


@dataclass
class ValidationResult:
    """Result of validating a change request."""
    is_valid: bool
    errors: List[ValidationIssue] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)


@dataclass
class ChangeResult:
    """Result of executing a single change."""
    index: int
    operation: str
    success: bool
    message: str
    created_id: Optional[int] = None
    error: Optional[str] = None


@dataclass
class BatchResult:
    """Result of executing a batch change request."""
    owner: str
    total_count: int
    success_count: int
    failure_count: int
    changes: List[ChangeResult]
    duration_seconds: float
    dry_run: bool = False

    @property
    def skipped_count(self) -> int:
        return self.total_count - self.success_count - self.failure_count
