"""Utility modules for sherpa."""

from .path_utils import PathUtils
from .ignore_rules import IgnoreRuleSet, EXCLUDED_DIRECTORIES
from .tree_builder import TreeResolver
from .git import is_git_url, clone_repository

__all__ = [
    "PathUtils",
    "IgnoreRuleSet",
    "EXCLUDED_DIRECTORIES",
    "TreeResolver",
    "is_git_url",
    "clone_repository",
]
