"""Configured Nia sources and scope resolution.

Scope names are checked here before any request is built, so an invalid
subtree costs no round-trip and the error lists the valid choices.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from chromagent.app.core.config import Settings
from chromagent.app.exceptions import ConfigurationError, ToolValidationError


@dataclass(frozen=True)
class SourceCatalog:
    """Source ids loaded once from settings.

    Attributes:
        docs: Documentation data-source ids
        repos: Repository ids, usually composite subtree ids
        archives: Archive data-source ids
        biographies: Biographical data-source ids
        single_source: Single data-source id for one-source deployments
        subtree_prefix: ``<org>/<dataset>/tree/<branch>`` for subtree ids
        default_subtree: Subtree used by code grep when none is given
    """
    docs: List[str] = field(default_factory=list)
    repos: List[str] = field(default_factory=list)
    archives: List[str] = field(default_factory=list)
    biographies: List[str] = field(default_factory=list)
    single_source: Optional[str] = None
    subtree_prefix: str = "chromium/chromium/tree/main"
    default_subtree: str = "base"

    @classmethod
    def from_settings(cls, settings: Settings) -> "SourceCatalog":
        return cls(
            docs=list(settings.chromium_docs_sources),
            repos=list(settings.chromium_repo_sources),
            archives=list(settings.archive_sources),
            biographies=list(settings.biography_sources),
            single_source=settings.naval_source_id or None,
            subtree_prefix=settings.subtree_prefix,
            default_subtree=settings.default_subtree,
        )

    def subtree_id(self, name: str) -> str:
        """Map a short subtree name to its composite repository id.

        Raises:
            ToolValidationError: If the name is blank
        """
        short = name.strip().strip("/")
        if not short:
            raise ToolValidationError(
                f"Subtree name must not be blank. Available: {', '.join(self.available_subtrees)}"
            )
        return f"{self.subtree_prefix}/{short}"

    @staticmethod
    def short_name(repo_id: str) -> str:
        return repo_id.rstrip("/").split("/")[-1]

    @property
    def available_subtrees(self) -> List[str]:
        return [self.short_name(r) for r in self.repos]

    def require_any(self) -> None:
        if not self.docs and not self.repos:
            raise ConfigurationError(
                "No Chromium sources configured. Set CHROMIUM_DOCS_SOURCES and/or "
                "CHROMIUM_REPO_SOURCES in your .env"
            )

    def resolve_subtrees(self, names: Optional[Sequence[str]]) -> List[str]:
        """Resolve subtree names to repository ids; all repos when none given.

        Raises:
            ToolValidationError: If any name is blank or not a configured subtree
        """
        if not names:
            return list(self.repos)

        selected = [self.subtree_id(n) for n in names]
        invalid = [n.strip().strip("/") for n, r in zip(names, selected) if r not in self.repos]
        if invalid:
            raise ToolValidationError(
                f"Invalid subtrees: {', '.join(invalid)}. "
                f"Available: {', '.join(self.available_subtrees)}"
            )
        # De-duplicate, keep order
        return list(dict.fromkeys(selected))

    def resolve_subtree(self, name: Optional[str]) -> str:
        """Resolve one subtree for code grep, defaulting to default_subtree.

        With no repos configured the composite id is used unchecked.
        """
        resolved = (name or "").strip() or self.default_subtree
        repo_id = self.subtree_id(resolved)
        if self.repos and repo_id not in self.repos:
            raise ToolValidationError(
                f"Subtree '{resolved}' not found. "
                f"Available: {', '.join(self.available_subtrees)}"
            )
        return repo_id

    def default_doc_source(self) -> str:
        if not self.docs:
            raise ConfigurationError("CHROMIUM_DOCS_SOURCES not configured")
        return self.docs[0]

    def default_archive_source(self) -> str:
        if self.archives:
            return self.archives[0]
        if self.biographies:
            return self.biographies[0]
        raise ConfigurationError("ARCHIVE_SOURCES not configured")

    def archive_scopes(self) -> Dict[str, List[str]]:
        """Search scopes for archive deployments; empty categories are left out."""
        scopes = {"archives": list(self.archives), "biographies": list(self.biographies)}
        scopes = {name: ids for name, ids in scopes.items() if ids}
        if not scopes:
            raise ConfigurationError(
                "No archive sources configured. Set ARCHIVE_SOURCES and/or "
                "BIOGRAPHY_SOURCES in your .env"
            )
        return scopes

    def require_single_source(self) -> str:
        if not self.single_source:
            raise ConfigurationError("NAVAL_SOURCE_ID not configured")
        return self.single_source
