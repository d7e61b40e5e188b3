"""List rendering domain package.

This package contains the grouping and rendering pipeline:
- TreeBuilder: Partitions records into a heading tree (tree.build)
- GroupOverrideResolver: Virtual and custom group regrouping
- HeadingNamer: Heading and species name resolution through a provider chain
- LineFormatter: Species line rendering
- DocumentAssembler: Depth-first wikitext rendering of a tree
- ListGenerator: Sections, templates and the run summary
"""

from taxonlists.lists.assembler import DocumentAssembler
from taxonlists.lists.formatter import LineFormatter
from taxonlists.lists.generator import ListGenerationCancelled, ListGenerator, ListResult
from taxonlists.lists.groups import GroupOverrideResolver
from taxonlists.lists.naming import HeadingInfo, HeadingNamer
from taxonlists.lists.templates import TemplateRenderer
from taxonlists.lists.tree import GroupingLevel, TreeNode, build, compile_grouping_plan

__all__ = [
    "DocumentAssembler",
    "GroupOverrideResolver",
    "GroupingLevel",
    "HeadingInfo",
    "HeadingNamer",
    "LineFormatter",
    "ListGenerationCancelled",
    "ListGenerator",
    "ListResult",
    "TemplateRenderer",
    "TreeNode",
    "build",
    "compile_grouping_plan",
]
