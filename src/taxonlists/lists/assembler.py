"""Depth-first rendering of a built tree into wikitext."""

from taxonlists.config.models import DisplayPreferences
from taxonlists.lists.formatter import LineFormatter
from taxonlists.lists.naming import HeadingNamer
from taxonlists.lists.tree import TreeNode

MAX_HEADING_DEPTH = 6


def heading_line(text: str, depth: int) -> str:
    """Wikitext heading, e.g. `=== Felidae ===`."""
    marks = "=" * depth
    return f"{marks} {text} {marks}"


class DocumentAssembler:
    """Walks a tree, emitting each child's heading and subtree before the node's leaves."""

    def __init__(
        self,
        namer: HeadingNamer,
        formatter: LineFormatter,
        max_depth: int = MAX_HEADING_DEPTH,
    ):
        self.namer = namer
        self.formatter = formatter
        self.max_depth = max_depth

    def assemble(
        self,
        root: TreeNode,
        start_depth: int,
        context: str | None,
        display: DisplayPreferences,
    ) -> tuple[str, int]:
        """Render a tree.

        Args:
            root: Tree root; its own label is not rendered
            start_depth: Heading depth of the root's children
            context: Status context of the enclosing section
            display: Display preferences of the list

        Returns:
            (wikitext, number of headings emitted)
        """
        lines: list[str] = []
        heading_count = self._append_node(lines, root, start_depth, context, display)
        text = "\n".join(lines)
        return (text + "\n" if lines else ""), heading_count

    def _append_node(
        self,
        lines: list[str],
        node: TreeNode,
        depth: int,
        context: str | None,
        display: DisplayPreferences,
    ) -> int:
        heading_count = 0
        for child in node.children:
            heading = self.namer.heading_for(child)
            lines.append(heading_line(heading.text, min(depth, self.max_depth)))
            heading_count += 1
            if heading.link:
                lines.append(f"{{{{main|{heading.link}}}}}")
            heading_count += self._append_node(lines, child, depth + 1, context, display)

        lines.extend(self.formatter.format_items(node.items, display, context))
        return heading_count
