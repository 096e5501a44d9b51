"""Injects the overlay loader script into browser.xhtml."""

from __future__ import annotations

from pathlib import Path

from bs4 import BeautifulSoup

from nora.errors import PatchError

MARK_ATTR = "data-geckomixin"

BROWSER_XHTML = "browser/chrome/browser/content/browser/browser.xhtml"


class DocumentPatcher:
    """Removes previously injected nodes, then appends a fresh loader script.

    Everything this patcher adds carries the data-geckomixin attribute,
    which is how the next run finds and replaces it.
    """

    name = "document"

    def __init__(self, package: str, script: str = "injectBrowser.inc.js", document: str = BROWSER_XHTML):
        self.package = package
        self.script = script
        self.document = document

    @property
    def loader(self) -> str:
        return (
            f'Services.scriptloader.loadSubScript("chrome://{self.package}/content/{self.script}", this);'
        )

    def apply(self, markup: str) -> str:
        """Return markup with the loader injected. Pure; used by patch()."""
        soup = BeautifulSoup(markup, "xml")

        for node in soup.find_all(attrs={MARK_ATTR: True}):
            node.decompose()

        head = soup.find("head")
        if head is None:
            raise PatchError("no <head> element to inject into")

        script = soup.new_tag("script", attrs={MARK_ATTR: ""})
        script.string = self.loader
        head.append(script)

        return str(soup)

    def patch(self, install_root: Path) -> None:
        path = install_root / self.document
        if not path.is_file():
            raise PatchError(f"Document not found: {path}")

        try:
            markup = path.read_text(encoding="utf-8")
        except OSError as e:
            raise PatchError(f"Failed to read {path}: {e}") from e

        try:
            patched = self.apply(markup)
        except PatchError as e:
            raise PatchError(f"{path}: {e}") from e

        try:
            path.write_text(patched, encoding="utf-8")
        except OSError as e:
            raise PatchError(f"Failed to write {path}: {e}") from e
