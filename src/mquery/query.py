"""
Query dispatcher: maps a query option to a fixed extraction recipe.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, Optional, TextIO, Union

from .config import MQueryConfig
from .core.ast_handler import ASTHandler
from .core.document_model import DocumentModel, DocumentNode, Tag
from .exceptions import MalformedDocumentError, QueryLevel, UnsupportedOptionError
from .render.deroff import Renderer
from .render.extractors import ListExtractor

logger = logging.getLogger(__name__)


class QueryOption(Enum):
    """Single-letter query options."""
    SUMMARY = "B"
    DESCRIPTION = "D"
    FUNCTIONS = "F"
    VARIABLES = "V"
    AUTHORS = "a"
    BUG_LINK = "b"
    DEPRECATED = "d"
    EXAMPLES = "e"
    MAINTAINERS = "m"


# Item head macros printed for each variable subsection, in order
VARIABLE_TAGS = (Tag.DV, Tag.EV, Tag.VA)


def _body(block: DocumentNode) -> DocumentNode:
    if block.body is None:
        raise MalformedDocumentError(f"{block.name} block has no body", block.position)
    return block.body


class QueryDispatcher:
    """
    Runs one query against a parsed document.

    Lookups marked required end the query with ``NotFoundError``; everything
    else is skipped silently when absent.
    """

    def __init__(
        self,
        document: DocumentModel,
        out: Optional[TextIO] = None,
        config: Optional[MQueryConfig] = None,
        handler: Optional[ASTHandler] = None,
    ):
        self.document = document
        self.config = config or MQueryConfig()
        self.handler = handler or ASTHandler()
        self.renderer = Renderer(out, self.handler.decoder)
        self.extractor = ListExtractor(self.renderer)

        self._recipes: Dict[QueryOption, Callable[[], QueryLevel]] = {
            QueryOption.SUMMARY: self.summary,
            QueryOption.DESCRIPTION: self.description,
            QueryOption.FUNCTIONS: self.function_list,
            QueryOption.VARIABLES: self.variable_list,
            QueryOption.AUTHORS: self.authors,
            QueryOption.BUG_LINK: self.bug_link,
            QueryOption.DEPRECATED: self.deprecated,
            QueryOption.EXAMPLES: self.examples,
            QueryOption.MAINTAINERS: self.maintainers,
        }

    def run(self, option: Union[QueryOption, str]) -> QueryLevel:
        """Run the recipe selected by ``option``."""
        if not isinstance(option, QueryOption):
            try:
                option = QueryOption(option)
            except ValueError:
                raise UnsupportedOptionError(f"option is not implemented: {option}") from None

        recipe = self._recipes.get(option)
        if recipe is None:
            raise UnsupportedOptionError(f"option is not implemented: {option.value}")

        logger.debug("Running %s query on %s", option.name.lower(), self.document.source_path)
        return recipe()

    def summary(self) -> QueryLevel:
        """One-line description from the NAME section."""
        section = self.handler.first_node_by_name(self.document.first_node, "NAME", required=True)
        description = self.handler.first_node_by_tag(_body(section), Tag.ND, required=True)
        return self.renderer.render(description)

    def description(self) -> QueryLevel:
        """DESCRIPTION body, followed by the links listed in SEE ALSO."""
        section = self.handler.first_node_by_name(self.document.first_node, "DESCRIPTION", required=True)
        self.renderer.render(_body(section))

        see_also = self.handler.first_node_by_name(self.document.first_node, "SEE ALSO")
        if see_also is None:
            return QueryLevel.OK

        links = self.handler.first_node_by_tag(_body(see_also), Tag.BL, required=True)
        self.extractor.print_item_bodies(_body(links), Tag.LK, self.config.references_header)
        return QueryLevel.OK

    def function_list(self) -> QueryLevel:
        """Names of the documented functions."""
        section = self.handler.first_node_by_name(self.document.first_node, "FUNCTIONS", required=True)
        functions = self.handler.first_node_by_tag(_body(section), Tag.BL, required=True)
        self.extractor.print_item_heads(_body(functions), Tag.IC, required=True)
        return QueryLevel.OK

    def variable_list(self) -> QueryLevel:
        """Names of the documented variables, grouped by subsection."""
        self.handler.first_node_by_name(self.document.first_node, "ECLASS VARIABLES", required=True)

        for name in self.config.variable_subsections:
            subsection = self.handler.first_node_by_name(self.document.first_node, name)
            if subsection is None:
                continue

            variables = self.handler.first_node_by_tag(_body(subsection), Tag.BL, required=True)
            for tag in VARIABLE_TAGS:
                self.extractor.print_item_heads(_body(variables), tag)
        return QueryLevel.OK

    def authors(self) -> QueryLevel:
        return self._section_body("AUTHORS")

    def maintainers(self) -> QueryLevel:
        return self._section_body("MAINTAINERS")

    def deprecated(self) -> QueryLevel:
        return self._section_body("DEPRECATED")

    def examples(self) -> QueryLevel:
        return self._section_body("EXAMPLES")

    def bug_link(self) -> QueryLevel:
        """Target of the link in REPORTING BUGS, without its description."""
        section = self.handler.first_node_by_name(self.document.first_node, "REPORTING BUGS", required=True)
        link = self.handler.first_node_by_tag(_body(section), Tag.LK, required=True)
        target = link.first_child
        if target is None:
            raise MalformedDocumentError("link has no target", link.position)
        return self.renderer.render(target)

    def _section_body(self, name: str) -> QueryLevel:
        section = self.handler.first_node_by_name(self.document.first_node, name, required=True)
        return self.renderer.render(_body(section))


def run_query(
    document: DocumentModel,
    option: Union[QueryOption, str],
    out: Optional[TextIO] = None,
    config: Optional[MQueryConfig] = None,
) -> QueryLevel:
    """Run a single query and return its status."""
    return QueryDispatcher(document, out, config).run(option)
