"""
Interactive finder state for browsing a snapshot.

FinderState is the whole state machine behind `ghdb find`: two switchable
collections, live substring filtering, selection, and the open/choose
actions. It has no terminal dependencies; ghdb.tui renders it and feeds
it key events.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .errors import OpenerError
from .github import PullRequest, Repository
from .opener import open_url
from .store import Snapshot


ICON_REPOSITORY = "\ufb2b"
ICON_PULL_REQUEST = "\uf113"

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    REPOSITORIES = "repositories"
    PULL_REQUESTS = "pull_requests"

    @property
    def label(self) -> str:
        return "Repositories" if self is Mode.REPOSITORIES else "Pull Requests"


class ItemKind(str, Enum):
    REPOSITORY = "repository"
    PULL_REQUEST = "pull_request"


@dataclass(frozen=True)
class FindItem:
    """One row of the finder list, tagged with the record kind it came from."""

    kind: ItemKind
    title: str
    subtitle: str
    filter_value: str
    url: str

    @classmethod
    def from_repository(cls, repo: Repository) -> "FindItem":
        return cls(
            kind=ItemKind.REPOSITORY,
            title=f"{ICON_REPOSITORY} {repo.full_name}",
            subtitle=repo.description or "",
            filter_value=repo.name,
            url=repo.html_url,
        )

    @classmethod
    def from_pull_request(cls, pr: PullRequest) -> "FindItem":
        draft = " (draft)" if pr.draft else ""
        return cls(
            kind=ItemKind.PULL_REQUEST,
            title=f"{ICON_PULL_REQUEST}  {pr.author}: {pr.title}",
            subtitle=f"#{pr.number} {pr.repository_name}{draft}",
            filter_value=pr.title,
            url=pr.html_url,
        )


# (keys, description) pairs shown in the help legend
KEY_HELP: list[tuple[str, str]] = [
    ("/", "filter"),
    ("enter", "choose"),
    ("o", "open"),
    ("r", "toggle repo/pull request search"),
    ("↑/k ↓/j", "move"),
    ("home/end", "first/last"),
    ("pgup/pgdn", "page up/down"),
    ("esc", "clear filter"),
    ("H/?", "toggle help"),
    ("q/ctrl+c", "quit"),
]

SHORT_HELP: list[tuple[str, str]] = [("/", "filter"), ("enter", "choose"), ("o", "open")]


class FinderState:
    """Mode, filter and selection over one loaded snapshot."""

    def __init__(
        self,
        snapshot: Snapshot,
        opener: Callable[[str], None] = open_url,
        mode: Mode = Mode.REPOSITORIES,
    ):
        self.repositories = [FindItem.from_repository(repo) for repo in snapshot.repositories]
        self.pull_requests = [FindItem.from_pull_request(pr) for pr in snapshot.pull_requests]
        self.opener = opener

        self.mode = mode
        self.query = ""
        self.filtering = False
        self.selected = 0
        self.show_help = False
        self.status = ""
        self.done = False

        self._visible = self._compute_visible()

    @property
    def title(self) -> str:
        return self.mode.label

    @property
    def items(self) -> list[FindItem]:
        """The active mode's full collection, in snapshot order."""
        if self.mode is Mode.REPOSITORIES:
            return self.repositories
        return self.pull_requests

    @property
    def visible(self) -> list[FindItem]:
        return self._visible

    @property
    def selected_item(self) -> FindItem | None:
        if not self._visible:
            return None
        return self._visible[self.selected]

    def _compute_visible(self) -> list[FindItem]:
        needle = self.query.casefold()
        if not needle:
            return list(self.items)
        return [item for item in self.items if needle in item.filter_value.casefold()]

    def _refresh(self) -> None:
        self._visible = self._compute_visible()
        self.selected = max(0, min(self.selected, len(self._visible) - 1))

    # -- transitions -------------------------------------------------------

    def toggle_mode(self) -> None:
        if self.mode is Mode.REPOSITORIES:
            self.mode = Mode.PULL_REQUESTS
        else:
            self.mode = Mode.REPOSITORIES
        self.query = ""
        self.filtering = False
        self.selected = 0
        self._refresh()

    def toggle_help(self) -> None:
        self.show_help = not self.show_help

    def set_filter(self, query: str) -> None:
        self.query = query
        self._refresh()

    def append_filter(self, text: str) -> None:
        self.set_filter(self.query + text)

    def delete_filter_char(self) -> None:
        self.set_filter(self.query[:-1])

    def start_filtering(self) -> None:
        self.filtering = True

    def accept_filter(self) -> None:
        self.filtering = False

    def clear_filter(self) -> None:
        self.filtering = False
        self.set_filter("")

    def move(self, delta: int) -> None:
        if not self._visible:
            self.selected = 0
            return
        self.selected = max(0, min(self.selected + delta, len(self._visible) - 1))

    def move_to(self, index: int) -> None:
        self.selected = index
        self._refresh()

    def open_selected(self) -> None:
        item = self.selected_item
        if item is None:
            self.status = "Nothing selected"
            return
        try:
            self.opener(item.url)
        except (OpenerError, OSError) as e:
            logger.warning("Failed to open %s: %s", item.url, e)
            self.status = f"Could not open {item.url}: {e}"
            return
        self.status = f"You opened {item.title}"

    def choose_selected(self) -> None:
        item = self.selected_item
        if item is None:
            self.status = "Nothing selected"
            return
        self.status = f"You chose {item.title}"

    def quit(self) -> None:
        self.done = True

    # -- key dispatch ------------------------------------------------------

    def handle_key(self, key: str, character: str | None = None) -> None:
        """
        Apply one key event.

        While filter entry is active every printable character goes to the
        filter; otherwise single-letter keys are commands.
        """
        self.status = ""

        if self.filtering:
            self._handle_filter_key(key, character)
            return

        if key == "ctrl+c":
            self.quit()
            return

        if character == "r":
            self.toggle_mode()
        elif character in ("H", "?"):
            self.toggle_help()
        elif character == "/":
            self.start_filtering()
        elif character == "o":
            self.open_selected()
        elif character == "q":
            self.quit()
        elif key == "enter":
            self.choose_selected()
        elif key == "escape":
            if self.query:
                self.clear_filter()
        elif key == "up" or character == "k":
            self.move(-1)
        elif key == "down" or character == "j":
            self.move(1)
        elif key == "home":
            self.move_to(0)
        elif key == "end":
            self.move_to(len(self._visible) - 1)
        elif key == "pageup":
            self.move(-10)
        elif key == "pagedown":
            self.move(10)

    def _handle_filter_key(self, key: str, character: str | None) -> None:
        if key == "ctrl+c":
            self.quit()
        elif key == "enter":
            self.accept_filter()
        elif key == "escape":
            self.clear_filter()
        elif key == "backspace":
            self.delete_filter_char()
        elif key == "up":
            self.move(-1)
        elif key == "down":
            self.move(1)
        elif character is not None and character.isprintable() and len(character) == 1:
            self.append_filter(character)
