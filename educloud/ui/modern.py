"""A Rich-powered console overview of the stored PDFs."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from ..services.storage import StoredFileEntry


@dataclass
class ProgramOverview:
    name: str
    # semester -> subject -> file names
    semesters: Dict[str, Dict[str, List[str]]]

    @property
    def file_count(self) -> int:
        return sum(len(files) for subjects in self.semesters.values() for files in subjects.values())


def group_entries(entries: Iterable[StoredFileEntry]) -> List[ProgramOverview]:
    """Group listing rows by program, semester and subject.

    Rows that do not follow the ``program/semester/subject/file`` layout are
    collected under a ``(otros)`` program.
    """

    tree: Dict[str, Dict[str, Dict[str, List[str]]]] = defaultdict(
        lambda: defaultdict(lambda: defaultdict(list))
    )
    for entry in entries:
        parts = entry.path.split("/")
        if len(parts) == 4:
            program, semester, subject, _ = parts
        else:
            program, semester, subject = "(otros)", "-", "/".join(parts[:-1]) or "-"
        tree[program][semester][subject].append(entry.name)

    overviews: List[ProgramOverview] = []
    for program in sorted(tree):
        semesters = {
            semester: {subject: sorted(files) for subject, files in sorted(subjects.items())}
            for semester, subjects in sorted(tree[program].items())
        }
        overviews.append(ProgramOverview(name=program, semesters=semesters))
    return overviews


class StorageOverviewUI:
    """Render the storage tree and per-program totals using Rich widgets."""

    def __init__(self, entries: Iterable[StoredFileEntry], *, console: Optional[Console] = None) -> None:
        self._entries = entries
        self._console = console or Console()

    def run(self) -> None:
        console = self._console
        programs = group_entries(self._entries)
        console.rule("[bold magenta]EduCloud Uploads")

        if not programs:
            console.print(
                Panel(
                    "No PDFs have been uploaded yet.",
                    title="Empty storage",
                    border_style="yellow",
                )
            )
            return

        root = Tree("[bold]uploads")
        for program in programs:
            program_node = root.add(f"[cyan]{program.name}")
            for semester, subjects in program.semesters.items():
                semester_node = program_node.add(f"[green]{semester}")
                for subject, files in subjects.items():
                    subject_node = semester_node.add(f"[yellow]{subject}")
                    for name in files:
                        subject_node.add(name)
        console.print(root)

        table = Table(box=box.SIMPLE_HEAVY)
        table.add_column("Program")
        table.add_column("Semesters", justify="right")
        table.add_column("PDFs", justify="right")
        for program in programs:
            table.add_row(program.name, str(len(program.semesters)), str(program.file_count))
        console.print(table)


__all__ = ["ProgramOverview", "StorageOverviewUI", "group_entries"]
