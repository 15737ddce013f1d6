"""Documentation maintenance: MDX frontmatter and docs.json navigation."""

from hypergen.docs.frontmatter import DocsError, FrontmatterProcessor, FrontmatterReport
from hypergen.docs.navigation import DocsJsonUpdater

__all__ = ["DocsError", "DocsJsonUpdater", "FrontmatterProcessor", "FrontmatterReport"]
